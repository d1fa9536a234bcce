"""
The services that run for the lifetime of the app, started and
stopped by the signals in :mod:`bms.signals`.
"""
