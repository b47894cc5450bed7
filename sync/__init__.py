"""
Legacy single-pair sync: status polling and per-table sync rules.
"""
