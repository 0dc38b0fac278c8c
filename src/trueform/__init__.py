"""
TrueForm - infrastructure-as-code provider core for TrueNAS appliances.

Maps declarative resource definitions onto the appliance's JSON-RPC management
API: a remote-procedure client with job tracking and typed errors, and
reconcilers that drive each resource from its desired state to the observed one.

Usage:
    >>> trueform nfs create --data '{"plan": {"enabled": true, "servers": 4}}'
    >>> trueform docker read --file state.json
"""

__version__ = "0.1.0"
