"""Reusable smoke check harness: probes, descriptors, harness and reports."""
