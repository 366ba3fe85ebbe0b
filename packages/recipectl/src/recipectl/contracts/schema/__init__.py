"""Packaged JSON schemas and their catalog."""
from .catalog import CatalogEntry, list_catalog_entries, load_catalog, lint_catalog
from .validate import schema_path, validate, validate_file

__all__ = ["CatalogEntry", "lint_catalog", "list_catalog_entries", "load_catalog", "schema_path", "validate", "validate_file"]
