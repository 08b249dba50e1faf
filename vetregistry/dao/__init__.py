"""Data-access layer — one DAO per table over a generic BaseDAO."""
