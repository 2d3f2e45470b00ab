"""Pure calculation functions for thresholds, paces, load and decisions.

Nothing in this package touches the database; services feed it
already-fetched time series and persist what it returns.
"""
