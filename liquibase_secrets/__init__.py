"""Resolve Liquibase credentials from Azure Key Vault."""
