"""
Core modules for Invoice Insights.

This package contains the aggregation engine: overview metrics,
trend buckets, status and payment-method breakdowns, and report assembly.
"""
