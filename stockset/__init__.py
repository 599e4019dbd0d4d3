"""StockSet: stock-collateralized lending with group trust pools."""

__version__ = "0.1.0"
