"""Discovery and indexing of public rooms across federated servers."""

__version__ = "0.1.0"
