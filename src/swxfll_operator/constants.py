"""Constants for the Swxfll Operator."""

# API Group
API_GROUP = "cache.swxfll.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_SWXFLL = "Swxfll"
KIND_DEPLOYMENT = "Deployment"

# Plurals
PLURAL_SWXFLL = "swxflls"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Operator identity
CONTROLLER_NAME = "swxfll-operator"

# Operand
IMAGE_ENV_VAR = "SWXFLL_IMAGE"
CONTAINER_NAME = "swxfll"
CONTAINER_PORT_NAME = "swxfll"
CONTAINER_COMMAND = ["swxfll", "-m=64", "-o", "modern", "-v"]
CONTAINER_RUN_AS_USER = 1001

# Spec bounds
MIN_SIZE = 1
MAX_SIZE = 5

# Labels
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_VERSION = "app.kubernetes.io/version"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_CREATED_BY = "app.kubernetes.io/created-by"

# Condition Types
COND_AVAILABLE = "Available"
COND_DEGRADED = "Degraded"

# Condition Reasons
REASON_RECONCILING = "Reconciling"
REASON_FINALIZING = "Finalizing"
REASON_RESIZING = "Resizing"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_CONFIGURATION_MISSING = "ConfigurationMissing"
EVENT_REASON_DEPLOYMENT_CREATED = "DeploymentCreated"
EVENT_REASON_DEPLOYMENT_UPDATED = "DeploymentUpdated"
EVENT_REASON_DELETING = "Deleting"
EVENT_REASON_FINALIZER_REMOVED = "FinalizerRemoved"
