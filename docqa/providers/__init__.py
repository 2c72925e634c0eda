"""Concrete adapters behind the docqa interfaces."""
