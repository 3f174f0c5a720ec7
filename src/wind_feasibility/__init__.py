"""Wind resource (Weibull) and 48 h SARIMA forecast analysis for a single site."""
