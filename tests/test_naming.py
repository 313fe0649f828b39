from platformdeployer.naming import layer_stack_name, stack_name, tenant_stack_name


def test_stack_name_joins_role_environment_and_location():
    assert stack_name("platform", "staging", "eastus") == "platform-staging-eastus"
    assert stack_name("services", "pr-123", "westeurope") == "services-pr-123-westeurope"


def test_tenant_stack_name_prefixes_app_and_tenant():
    assert tenant_stack_name("contoso", "prod-blue", "eastus") == "app-contoso-prod-blue-eastus"


def test_layer_stack_name_uses_tenant_form_only_with_tenant():
    assert layer_stack_name("app", "dev", "eastus") == "app-dev-eastus"
    assert layer_stack_name("app", "dev", "eastus", tenant_id="acme") == "app-acme-dev-eastus"
