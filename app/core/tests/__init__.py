"""
Tests for core: service results, response envelopes and the health check.
"""
