# replication/errors.py


class ReplicationError(Exception):
    """Base class for every failure raised while rebuilding a model."""


class UnsupportedTopology(ReplicationError):
    """The original model uses a structure the rebuild cannot reproduce."""


class InvalidConfiguration(ReplicationError, ValueError):
    """The override options do not fit the original model."""


class WeightTransferError(ReplicationError):
    """Weights of an original layer do not fit its rebuilt counterpart."""
