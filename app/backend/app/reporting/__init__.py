"""Reporting engine: records, date windows, billability and report builders."""
