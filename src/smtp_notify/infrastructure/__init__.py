"""Infrastructure adapters: SMTP protocol engine, MIME parsing, HTTP dispatch."""
