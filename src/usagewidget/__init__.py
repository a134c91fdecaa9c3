"""usagewidget - CPU, memory and network throughput widget."""

__version__ = "0.1.0"
