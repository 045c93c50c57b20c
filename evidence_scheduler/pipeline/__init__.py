"""Batch forecasting pipeline utilities.

This package provides:
- Forecast configuration (TOML)
- A rich progress display for long simulations
- A runner that loads task history, simulates and writes a JSON report
"""
