"""
termgraf - live Flux query sparklines in the terminal.

Architecture:
- providers.py: data model (config, datasets) and backend protocols
- config.py / templates.py: config loading and query templating
- executor.py / influx_provider.py: query execution and the InfluxDB backend
- state.py / scheduler.py: shared dataset store and per-widget polling
- render.py / views/: line reconciliation and Textual components
- app.py / cli.py: application and command-line entry point

Extensibility points:
1. New backends: implement the QueryBackend protocol
2. New views: add to views/, wire up in app.py
"""

__version__ = "0.1.0"
