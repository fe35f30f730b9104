"""Locust load test for the Online Boutique storefront."""
