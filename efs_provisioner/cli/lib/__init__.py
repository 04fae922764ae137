"""Host helpers: mount table, filesystem ownership, input validation, API client."""
