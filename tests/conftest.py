import pytest

from buildcheck.classification import ErrorClassifier
from buildcheck.config import BuildCheckConfig
from tests.utils import FakeProcessRunner, WorkspaceBuilder


@pytest.fixture
def temp_workspace(tmp_path):
    """Create a temporary workspace directory"""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def builder(temp_workspace):
    """Workspace builder rooted at the temporary workspace"""
    return WorkspaceBuilder(temp_workspace)


@pytest.fixture
def dotnet_workspace(builder):
    """Minimal healthy solution: API -> Core, plus one unit test project"""
    builder.central_packages({"Newtonsoft.Json": "13.0.3", "xunit": "2.6.2"})
    builder.project("src/Core/Core.csproj", packages={"Newtonsoft.Json": None})
    builder.project("src/Api/Api.csproj", references=["../Core/Core.csproj"])
    builder.project(
        "tests/UnitTests/Core.UnitTests.csproj",
        references=["../../src/Core/Core.csproj"],
        packages={"xunit": None},
    )
    return builder.root


@pytest.fixture
def classifier():
    return ErrorClassifier()


@pytest.fixture
def fake_runner():
    return FakeProcessRunner()


@pytest.fixture
def config():
    """Default configuration without container builds or database checks"""
    return BuildCheckConfig.model_validate(
        {"docker": {"buildTest": False}, "environment": {"checkDatabase": False}}
    )


@pytest.fixture
def clean_environ():
    """Environment satisfying every required-variable check without external connections"""
    return {
        "ConnectionStrings__DefaultConnection": "Host=localhost;Port=5432;Database=inventory",
        "POSTGRES_DB": "inventory",
        "POSTGRES_USER": "inventory",
        "POSTGRES_PASSWORD": "secret",
        "Jwt__Key": "k" * 40,
        "Jwt__Issuer": "inventory-api",
        "Jwt__Audience": "inventory-clients",
        "SERVER_IP": "127.0.0.1",
        "DOMAIN": "inventory.local",
        "ASPNETCORE_URLS": "http://+:5000",
    }
