"""Error taxonomy for policy building, traffic evaluation and ingestion."""


class NetloomError(Exception):
    """Base class for all netloom errors."""


class InvalidPolicyError(NetloomError):
    """A policy document violates a structural rule and cannot be compiled."""

    def __init__(self, policy_id: str, message: str):
        self.policy_id = policy_id
        self.message = message
        super().__init__(f"{policy_id}: {message}" if policy_id else message)


class InvalidCIDRError(InvalidPolicyError):
    """A CIDR string could not be parsed."""

    def __init__(self, cidr: str, policy_id: str = ""):
        self.cidr = cidr
        super().__init__(policy_id, f"invalid cidr '{cidr}'")


class InvalidTrafficError(NetloomError):
    """Traffic cannot be evaluated (bad protocol, port or workload identifier)."""


class ResolutionError(NetloomError):
    """A named or numbered port could not be resolved on the destination pod."""

    NAMED_PORT = "named-port"
    PORT_PROTOCOL = "port-protocol"

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(message)


class ExternalFetchError(NetloomError):
    """Reading a policy tier or other resources from the cluster failed."""

    def __init__(self, tier: str, cause: BaseException | str):
        self.tier = tier
        self.cause = cause
        reason = str(cause) or type(cause).__name__
        super().__init__(f"unable to read {tier} from cluster: {reason}")


class PolicyFileError(OSError):
    """A policy, traffic or resources file could not be read or parsed."""

    def __init__(self, path: str, cause: BaseException | str):
        self.path = path
        self.cause = cause
        super().__init__(f"unable to read {path}: {cause}")
