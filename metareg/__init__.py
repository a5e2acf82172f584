"""metareg — tooling for a registry of signed entity metadata statements.

Entities publish a small metadata record (name, URL, contact handles),
sign it with their entity key and submit it to a file-based registry that
is distributed through Git.
"""

__version__ = "0.1.0"
