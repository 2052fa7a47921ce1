"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - payments: Payment provider abstraction (Stripe, manual settlement, mock)
    - insurance: Underwriter abstraction (Lloyd's, auto-approve, mock)
    - tokenization: Token minting abstraction (simulated chain, mock)
    - timeouts: Bounded calls to any of the above

This package enables:
    - Easy testing with mock implementations
    - Switching between providers without code changes
    - Loose coupling between business logic and infrastructure
"""
