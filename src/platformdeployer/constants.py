"""Shared constants for stack configuration and process exit codes."""

INFRASTRUCTURE_PREFIX = "infrastructure"
DATABASE_PREFIX = "database"
KEYVAULT_PREFIX = "keyvault"
SERVICES_PREFIX = "services"
UPSTREAM_PREFIX = "upstream"
TENANT_PREFIX = "tenant"

PLATFORM_LAYER = "platform"
SERVICES_LAYER = "services"
APPLICATION_LAYER = "application"

PLATFORM_PROJECT_DIR = "platform-services"
SERVICES_PROJECT_DIR = "services-addons"
APPLICATION_PROJECT_DIR = "application-services"

APP_STACK_ROLE = "app"

DEFAULT_ORG = "myorg"
DEFAULT_PROJECT = "cloud-native-platform"
DEFAULT_ENVIRONMENT = "dev"
DEFAULT_LOCATION = "eastus"
DEFAULT_CLUSTER_TYPE = "aks"
DEFAULT_STACKS_DIR = "stacks"
DEFAULT_CONFIG_FILE = ".platform-deployer.yml"

DEFAULT_SQL_ADMIN_USERNAME = "azureAdmin"
# Only ever used for non-production targets.
INSECURE_DEFAULT_SQL_ADMIN_PASSWORD = "ChangeMe@123!"

DATABASE_ISOLATION_VALUES = ("shared", "isolated")
KEYVAULT_SKU_VALUES = ("standard", "premium")

PRODUCTION_DATABASE_SKU = "S3"
NONPRODUCTION_DATABASE_SKU = "S1"
DEFAULT_DATABASE_SKU_TIER = "Standard"

EXIT_OK = 0
EXIT_PROVISIONING_FAILED = 1
EXIT_INVALID_CONFIGURATION = 2
EXIT_TENANT_EXISTS = 3
