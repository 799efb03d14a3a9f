"""Clinic Rx service: prescription generation and structure-preserving translation."""
