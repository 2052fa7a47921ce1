# Utils package for the trading backend

# ruff: noqa: F403
from .transaction_utils import *
