"""Constants for the CockroachDB Cloud DBaaS Operator."""

# API Group
API_GROUP = "dbaas.redhat.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_INVENTORY = "CrdbDBaaSInventory"
KIND_CONNECTION = "CrdbDBaaSConnection"
KIND_SECRET = "Secret"
KIND_CONFIG_MAP = "ConfigMap"

# Resource Plurals
PLURAL_INVENTORY = "crdbdbaasinventories"
PLURAL_CONNECTION = "crdbdbaasconnections"

# Labels
OPERATOR_NAME = "ccapi-k8s-operator"
LABEL_MANAGED_BY = "managed-by"
LABEL_OWNER = "owner"
LABEL_OWNER_KIND = "owner.kind"
LABEL_OWNER_NAMESPACE = "owner.namespace"

# Field Manager
FIELD_MANAGER = "crdb-cloud-operator"

# Credential secret keys
CREDENTIAL_ORG_ID_KEY = "orgId"
CREDENTIAL_API_KEY_KEY = "apiKey"

# Generated object name prefixes
CREDENTIALS_SECRET_PREFIX = "crdb-cloud-user-credentials-"
CONNECTION_CONFIG_MAP_PREFIX = "crdb-cloud-conn-cm-"

# Connection info
CONNECTION_TYPE = "postgresql"
CONNECTION_PROVIDER = "CockroachDB Cloud"
CONNECTION_PORT = "26257"
CONNECTION_DATABASE = "defaultdb"
CERTIFICATE_FILE_NAME = "root.crt"

# Condition Types
COND_SPEC_SYNCED = "SpecSynced"
COND_READY_FOR_BINDING = "ReadyForBinding"
COND_NOT_READY = "NotReady"

# Condition Reasons
REASON_SYNC_OK = "SyncOK"
REASON_READY = "Ready"
REASON_INVENTORY_NOT_READY = "InventoryNotReady"
REASON_INVENTORY_NOT_FOUND = "InventoryNotFound"
REASON_CREDENTIALS_UNAVAILABLE = "CredentialsUnavailable"
REASON_PROVISIONING_FAILED = "ProvisioningFailed"
REASON_PERSIST_FAILED = "PersistFailed"

# Provisioning journal phases
PHASE_USER_REQUESTED = "UserRequested"
PHASE_SECRET_CREATED = "SecretCreated"
PHASE_CONFIG_MAP_CREATED = "ConfigMapCreated"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_INVENTORY_SYNCED = "InventorySynced"
EVENT_REASON_SQL_USER_CREATED = "SqlUserCreated"
EVENT_REASON_CONNECTION_READY = "ConnectionReady"
EVENT_REASON_COMPENSATION_PERFORMED = "CompensationPerformed"
