"""
Unit tests for Docker build diagnostics
"""

import pytest

from buildcheck.docker import DockerBuildStage, DockerDiagnostics
from buildcheck.docker.diagnostics import determine_failure_stage, output_severity
from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity, ValidationStatus

DOCKERFILE = """\
FROM mcr.microsoft.com/dotnet/sdk:8.0 AS build
WORKDIR /src
COPY src/ ./src/
RUN dotnet publish src/Api/Api.csproj -c Release -o /app

FROM mcr.microsoft.com/dotnet/aspnet:8.0
WORKDIR /app
COPY --from=build /app .
ENTRYPOINT ["dotnet", "Api.dll"]
"""


@pytest.fixture
def diagnostics_for(config, classifier, fake_runner):
    def make(workspace, **overrides):
        docker_config = config.docker.model_copy(update=overrides)
        return DockerDiagnostics(workspace, docker_config, classifier, fake_runner)

    return make


class TestDockerfileAnalysis:
    """Static Dockerfile checks"""

    def test_parent_directory_copy_is_flagged(self, builder, diagnostics_for):
        path = builder.file(
            "Dockerfile",
            "FROM mcr.microsoft.com/dotnet/aspnet:8.0\nWORKDIR /app\nCOPY ../secrets /app\n",
        )

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.issues == ["COPY source should be relative: ../secrets"]

    def test_healthy_multi_stage(self, builder, diagnostics_for):
        builder.file("src/Api/Program.cs", "")
        path = builder.file("Dockerfile", DOCKERFILE)

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.is_valid
        assert analysis.is_multi_stage
        assert analysis.recommendations == []

    def test_missing_from(self, builder, diagnostics_for):
        path = builder.file("Dockerfile", "WORKDIR /app\n")

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert "No FROM instruction found" in analysis.issues

    def test_missing_copy_source(self, builder, diagnostics_for):
        path = builder.file("Dockerfile", "FROM alpine:3.19\nWORKDIR /app\nCOPY publish/ .\n")

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.issues == ["COPY source not found: publish/"]

    def test_absolute_and_invalid_copy(self, builder, diagnostics_for):
        path = builder.file("Dockerfile", "FROM alpine:3.19\nCOPY /etc/passwd /tmp\nCOPY onlyone\n")

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.issues == [
            "COPY source should be relative: /etc/passwd",
            "Invalid COPY instruction",
        ]

    def test_recommendations(self, builder, diagnostics_for):
        runs = "\n".join(f"RUN step-{i}" for i in range(6))
        path = builder.file("Dockerfile", f"FROM ubuntu\n{runs}\n")

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.recommendations == [
            "Consider explicit tag for: ubuntu",
            "Consider combining RUN instructions to reduce layers",
            "Consider setting WORKDIR for clarity",
        ]
        assert analysis.run_instructions == 6

    def test_line_continuations_joined(self, builder, diagnostics_for):
        path = builder.file(
            "Dockerfile",
            "FROM alpine:3.19\nWORKDIR /app\n# comment\nRUN apk add \\\n    curl\n",
        )

        analysis = diagnostics_for(builder.root).analyze_dockerfile(path)

        assert analysis.run_instructions == 1
        assert analysis.is_valid


class TestComposeAnalysis:
    """docker-compose checks"""

    def test_valid_compose(self, builder, diagnostics_for):
        builder.file("src/Api/Dockerfile", DOCKERFILE)
        path = builder.file(
            "docker-compose.yml",
            "services:\n"
            "  api:\n"
            "    build: ./src/Api\n"
            "  db:\n"
            "    image: postgres:16\n",
        )

        analysis = diagnostics_for(builder.root).analyze_compose(path)

        assert analysis.is_valid
        assert analysis.services == ["api", "db"]

    def test_version_key_is_recommendation_only(self, builder, diagnostics_for):
        path = builder.file(
            "docker-compose.yml", "version: '3.8'\nservices:\n  db:\n    image: postgres:16\n"
        )

        analysis = diagnostics_for(builder.root).analyze_compose(path)

        assert analysis.is_valid
        assert len(analysis.recommendations) == 1

    @pytest.mark.parametrize(
        "content,issue",
        [
            ("", "Compose file is empty"),
            ("services: [unclosed", "Invalid compose file"),
            ("- just\n- a list\n", "Compose file must be a mapping"),
            ("services: {}\n", "No services defined"),
            ("services:\n  api:\n    ports: ['80:80']\n", "Service api defines neither"),
            ("services:\n  api:\n    build:\n      context: ./gone\n", "Build context not found"),
            ("services:\n  web: nginx:1.25\n", "Service web must be a mapping"),
            ("services:\n  web:\n    build: 42\n", "Service web build must be a path or a mapping"),
        ],
    )
    def test_compose_issues(self, builder, diagnostics_for, content, issue):
        path = builder.file("docker-compose.yml", content)

        analysis = diagnostics_for(builder.root).analyze_compose(path)

        assert analysis.issues[0].startswith(issue)


class TestBuildOutput:
    """Stage detection and output classification"""

    @pytest.mark.parametrize(
        "output,stage",
        [
            ("Step 1/8 : FROM mcr.microsoft.com/dotnet/sdk:8.0\nmanifest unknown", DockerBuildStage.BASE_IMAGE),
            ("RUN dotnet restore\nNU1301: unable to load", DockerBuildStage.RESTORE),
            ("RUN dotnet build -c Release", DockerBuildStage.BUILD),
            ("RUN dotnet publish -o /app", DockerBuildStage.PUBLISH),
            ('ENTRYPOINT ["dotnet"]', DockerBuildStage.RUNTIME),
            ("something else", DockerBuildStage.UNKNOWN),
        ],
    )
    def test_failure_stage(self, output, stage):
        assert determine_failure_stage(output) == stage

    def test_stage_keywords_are_case_sensitive(self):
        assert determine_failure_stage("from scratch") == DockerBuildStage.UNKNOWN

    def test_output_severity(self):
        assert output_severity("FATAL: out of space") == ErrorSeverity.CRITICAL
        assert output_severity("error: nope") == ErrorSeverity.HIGH
        assert output_severity("warning: deprecated") == ErrorSeverity.MEDIUM
        assert output_severity("copy failed") == ErrorSeverity.LOW

    def test_analyze_build_output(self, temp_workspace, diagnostics_for):
        output = (
            "Step 3/8 : COPY app.csproj .\n"
            "COPY failed: file not found in build context\n"
            "open /var/run/docker.sock: permission denied\n"
            "ERROR: failed to solve: process did not complete\n"
            "Successfully tagged nothing\n"
        )

        errors = diagnostics_for(temp_workspace).analyze_build_output(output, source="Dockerfile")

        assert [e.category for e in errors] == [
            ErrorCategory.DOCKER_BUILD,
            ErrorCategory.ENVIRONMENT_CONFIGURATION,
            ErrorCategory.DOCKER_BUILD,
        ]
        assert errors[2].severity == ErrorSeverity.HIGH
        # "build context" in the output names the Build stage
        assert all(e.stage == DockerBuildStage.BUILD for e in errors)
        assert errors[0].to_dict()["stage"] == "Build"

    def test_build_totals_skipped(self, temp_workspace, diagnostics_for):
        output = (
            "#12 0.9 Build FAILED.\n"
            "    0 Warning(s)\n"
            "    1 Error(s)\n"
            "#12 ERROR: process \"/bin/sh -c dotnet publish\" did not complete successfully\n"
        )

        errors = diagnostics_for(temp_workspace).analyze_build_output(output)

        assert [e.message for e in errors] == [
            '#12 ERROR: process "/bin/sh -c dotnet publish" did not complete successfully'
        ]


class TestValidate:
    """Full Docker validation"""

    def test_no_dockerfile(self, temp_workspace, diagnostics_for):
        result = diagnostics_for(temp_workspace).validate()

        assert result.status == ValidationStatus.FAILED
        assert result.errors[0].message == "No Dockerfile found in workspace"

    def test_engine_unavailable(self, builder, diagnostics_for, fake_runner):
        builder.file("Dockerfile", "FROM alpine:3.19\nWORKDIR /app\n")
        fake_runner.when("docker --version", raises=FileNotFoundError("docker"))

        result = diagnostics_for(builder.root, build_test=True).validate()

        assert [e.message for e in result.errors] == ["Docker is not available for build testing"]
        assert result.errors[0].stage == DockerBuildStage.TESTING
        assert fake_runner.commands_containing("docker build") == []

    def test_failed_build(self, builder, diagnostics_for, fake_runner):
        builder.file(".dockerignore", "bin/\n")
        builder.file("Dockerfile", "FROM alpine:3.19\nWORKDIR /app\n")
        fake_runner.when(
            "docker build",
            returncode=1,
            stderr="RUN dotnet restore\nerror NU1301: Unable to load the service index\n",
        )

        result = diagnostics_for(builder.root, build_test=True).validate()

        test = result.build_tests["Dockerfile"]
        assert not test.success
        assert test.stage == DockerBuildStage.RESTORE
        assert test.recommendation == "Check NuGet sources and network connectivity"
        assert result.status == ValidationStatus.FAILED
        assert "Check NuGet sources and network connectivity" in result.recommendations

    def test_successful_build(self, builder, diagnostics_for, fake_runner):
        builder.file(".dockerignore", "bin/\n")
        builder.file("Dockerfile", "FROM alpine:3.19\nWORKDIR /app\n")

        result = diagnostics_for(builder.root, build_test=True).validate()

        assert result.status == ValidationStatus.PASSED
        assert result.build_tests["Dockerfile"].success
        assert result.recommendations == []

    def test_build_test_disabled(self, builder, diagnostics_for, fake_runner):
        builder.file("Dockerfile", "FROM alpine:3.19\nWORKDIR /app\n")

        result = diagnostics_for(builder.root).validate()

        assert fake_runner.calls == []
        assert result.recommendations == ["Consider adding .dockerignore file"]
