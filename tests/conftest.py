import pytest

from platformdeployer.errors import StackAlreadyExistsError
from platformdeployer.models import StackOutputs

PLATFORM_OUTPUTS = {
    "resourceGroupName": "rg-platform-dev-eastus",
    "vnetId": "/subscriptions/sub/vnets/vnet-platform-dev-eastus",
    "aksClusterId": "/subscriptions/sub/aks/aksc-platform-dev-eastus",
    "dbServerName": "sql-platform-dev-eastus",
    "keyVaultUri": "https://kv-platform-dev-eastus.vault.azure.net/",
    "logAnalyticsWorkspaceId": "/subscriptions/sub/law",
}


class FakeStack:
    def __init__(self, engine, name, work_dir):
        self.engine = engine
        self.name = name
        self.work_dir = work_dir
        self.config = {}
        self.secret_config = set()

    def set_config(self, key, value, secret=False):
        self.config[key] = value
        if secret:
            self.secret_config.add(key)

    def preview(self):
        self.engine.calls.append(("preview", self.name))
        if self.engine.fail_on.get(self.name) == "preview":
            raise RuntimeError(f"preview exploded for {self.name}")
        return {"create": 3}

    def up(self):
        self.engine.calls.append(("up", self.name))
        if self.engine.fail_on.get(self.name) == "up":
            raise RuntimeError(f"up exploded for {self.name}")
        values = self.engine.outputs_by_stack.get(self.name, {})
        return StackOutputs(values, secret_keys=self.engine.secret_outputs.get(self.name, ()))

    def outputs(self):
        values = self.engine.outputs_by_stack.get(self.name, {})
        return StackOutputs(values, secret_keys=self.engine.secret_outputs.get(self.name, ()))


class FakeStackEngine:
    """In-memory engine recording every call made against it."""

    def __init__(self):
        self.stacks = {}
        self.calls = []
        self.fail_on = {}
        self.outputs_by_stack = {}
        self.secret_outputs = {}

    def _open(self, name, work_dir):
        stack = self.stacks.get(name)
        if stack is None:
            stack = FakeStack(self, name, work_dir)
            self.stacks[name] = stack
        return stack

    def select_or_create(self, stack_name, work_dir):
        self.calls.append(("select_or_create", stack_name))
        return self._open(stack_name, work_dir)

    def create(self, stack_name, work_dir):
        self.calls.append(("create", stack_name))
        if stack_name in self.stacks:
            raise StackAlreadyExistsError(stack_name)
        return self._open(stack_name, work_dir)

    def select(self, stack_name, work_dir):
        self.calls.append(("select", stack_name))
        if stack_name not in self.stacks:
            raise RuntimeError(f"no stack named {stack_name}")
        return self.stacks[stack_name]

    def applied(self):
        return [name for action, name in self.calls if action == "up"]


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None

    def error(self, *_args, **_kwargs):
        return None


class RecordingReporter:
    def __init__(self):
        self.events = []

    def pipeline_started(self, metadata):
        self.events.append(("pipeline_started", metadata["effective_environment"]))

    def layer_started(self, layer, stack_name):
        self.events.append(("layer_started", layer))

    def layer_skipped(self, layer, reason):
        self.events.append(("layer_skipped", layer))

    def layer_finished(self, result):
        self.events.append(("layer_finished", result.layer, result.status))

    def pipeline_finished(self, result):
        self.events.append(("pipeline_finished", result.succeeded))

    def plan(self, entries):
        self.events.append(("plan", [entry["stack"] for entry in entries]))

    def tenant_provisioned(self, result):
        self.events.append(("tenant_provisioned", result.stack_name))


@pytest.fixture
def engine():
    fake = FakeStackEngine()
    fake.outputs_by_stack["platform-dev-eastus"] = dict(PLATFORM_OUTPUTS)
    fake.outputs_by_stack["services-dev-eastus"] = {"monitoringNamespaceName": "monitoring"}
    return fake


@pytest.fixture
def platform_outputs():
    return StackOutputs(PLATFORM_OUTPUTS)


@pytest.fixture
def dummy_logger():
    return DummyLogger()


@pytest.fixture
def reporter():
    return RecordingReporter()
