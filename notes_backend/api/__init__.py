"""HTTP API for personal notes: auth, bearer tokens and per-user note CRUD."""
