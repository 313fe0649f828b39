import pytest

from platformdeployer.environment import (
    BaseEnvironment,
    ClusterTier,
    DeploymentSlot,
    EnvironmentIdentity,
    EphemeralEnvironment,
    get_cluster_tier,
    get_effective_environment_name,
    get_environment_namespace,
    is_ephemeral_environment,
    is_production_class,
    parse_environment,
    parse_slot,
)


def test_effective_name_for_long_lived_environment_is_unchanged():
    assert get_effective_environment_name(BaseEnvironment.STAGING) == "staging"


def test_effective_name_for_pr_uses_ephemeral_id():
    assert get_effective_environment_name(EphemeralEnvironment.PR, ephemeral_id="123") == "pr-123"


def test_effective_name_for_prod_slot_appends_slot():
    assert get_effective_environment_name(BaseEnvironment.PROD, slot=DeploymentSlot.BLUE) == "prod-blue"
    assert get_effective_environment_name("prod", slot="green") == "prod-green"


def test_effective_name_for_pr_without_id_falls_back_to_pr():
    assert get_effective_environment_name(EphemeralEnvironment.PR) == "pr"


def test_namespace_matches_effective_name():
    assert get_environment_namespace(EphemeralEnvironment.PR, "42") == "pr-42"
    assert get_environment_namespace(BaseEnvironment.PROD, slot=DeploymentSlot.GREEN) == "prod-green"


@pytest.mark.parametrize(
    "env, expected",
    [
        (BaseEnvironment.PROD, True),
        (BaseEnvironment.STAGING, False),
        (BaseEnvironment.DEV, False),
        (EphemeralEnvironment.PR, False),
        ("prod", True),
        ("prod-blue", True),
        ("prod-green", True),
        ("pr-12", False),
        ("production", False),
    ],
)
def test_is_production_class(env, expected):
    assert is_production_class(env) is expected


def test_cluster_tier_keeps_staging_and_pr_on_nonprod():
    assert get_cluster_tier(BaseEnvironment.STAGING) is ClusterTier.NONPROD
    assert get_cluster_tier(EphemeralEnvironment.PR) is ClusterTier.NONPROD
    assert get_cluster_tier(BaseEnvironment.PROD) is ClusterTier.PROD
    assert get_cluster_tier("prod-blue") is ClusterTier.PROD


def test_is_ephemeral_environment():
    assert is_ephemeral_environment(EphemeralEnvironment.PR)
    assert is_ephemeral_environment("pr")
    assert not is_ephemeral_environment(BaseEnvironment.TEST)


def test_parse_environment_accepts_known_values_and_rejects_unknown():
    assert parse_environment("prod") is BaseEnvironment.PROD
    assert parse_environment(" PR ") is EphemeralEnvironment.PR
    with pytest.raises(ValueError, match="Unknown environment"):
        parse_environment("qa")


def test_parse_slot_treats_empty_as_absent():
    assert parse_slot(None) is None
    assert parse_slot("") is None
    assert parse_slot("Blue") is DeploymentSlot.BLUE


def test_identity_properties():
    identity = EnvironmentIdentity(BaseEnvironment.PROD, slot=DeploymentSlot.BLUE)

    assert identity.effective_name == "prod-blue"
    assert identity.namespace == "prod-blue"
    assert identity.is_production_class
    assert identity.cluster_tier is ClusterTier.PROD
    assert not identity.is_ephemeral

    pr_identity = EnvironmentIdentity(EphemeralEnvironment.PR, ephemeral_id="7")
    assert pr_identity.effective_name == "pr-7"
    assert pr_identity.is_ephemeral
    assert pr_identity.cluster_tier is ClusterTier.NONPROD


@pytest.mark.parametrize("name", ["prod", "prod-blue", "prod-green"])
def test_production_names_map_to_prod_tier(name):
    assert get_cluster_tier(name) is ClusterTier.PROD


@pytest.mark.parametrize("name", ["dev", "test", "staging", "pr-1", "pr-999"])
def test_other_names_map_to_nonprod_tier(name):
    assert get_cluster_tier(name) is ClusterTier.NONPROD
