"""Integration layer for the eDepot ERP API."""
