"""
High-level use cases for the Gostwear API.

Each service orchestrates the record store to implement business rules
(register, login, catalog reads, order intake). Routers call these services
instead of touching the JSON files directly.
"""
