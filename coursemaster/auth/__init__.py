"""Identity verification and role checks."""
