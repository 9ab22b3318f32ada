from .connection import ChainConnection, TxHandle

__all__ = ["ChainConnection", "TxHandle"]
