"""RoleCase: capture job postings, enrich them remotely, review and save."""

__version__ = "0.3.0"
