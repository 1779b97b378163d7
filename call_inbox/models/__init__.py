from call_inbox.models.call_claim import CallClaim, CallStatus
from call_inbox.models.credential import Credential, CredentialKind
from call_inbox.models.extension_mapping import ExtensionMapping

__all__ = ["CallClaim", "CallStatus", "Credential", "CredentialKind", "ExtensionMapping"]
