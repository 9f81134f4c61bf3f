"""Builders for on-disk .NET workspaces used by tests."""

from __future__ import annotations

import json
from pathlib import Path


def project_xml(
    target_framework: str | None = "net8.0",
    references: list[str] | None = None,
    packages: dict[str, str | None] | None = None,
) -> str:
    items = []
    for include in references or []:
        items.append(f'    <ProjectReference Include="{include}" />')
    for name, version in (packages or {}).items():
        version_attr = f' Version="{version}"' if version else ""
        items.append(f'    <PackageReference Include="{name}"{version_attr} />')
    framework = (
        f"    <TargetFramework>{target_framework}</TargetFramework>\n" if target_framework else ""
    )
    item_group = "  <ItemGroup>\n" + "\n".join(items) + "\n  </ItemGroup>\n" if items else ""
    return (
        '<Project Sdk="Microsoft.NET.Sdk">\n'
        "  <PropertyGroup>\n"
        f"{framework}"
        "  </PropertyGroup>\n"
        f"{item_group}"
        "</Project>\n"
    )


class WorkspaceBuilder:
    """Fluent helper writing a solution layout under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def central_packages(self, versions: dict[str, str]) -> WorkspaceBuilder:
        items = "\n".join(
            f'    <PackageVersion Include="{name}" Version="{version}" />'
            for name, version in versions.items()
        )
        (self.root / "Directory.Packages.props").write_text(
            "<Project>\n"
            "  <PropertyGroup>\n"
            "    <ManagePackageVersionsCentrally>true</ManagePackageVersionsCentrally>\n"
            "  </PropertyGroup>\n"
            f"  <ItemGroup>\n{items}\n  </ItemGroup>\n"
            "</Project>\n"
        )
        return self

    def project(
        self,
        relative: str,
        target_framework: str | None = "net8.0",
        references: list[str] | None = None,
        packages: dict[str, str | None] | None = None,
    ) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(project_xml(target_framework, references, packages))
        return path

    def file(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def json(self, relative: str, document: object) -> Path:
        return self.file(relative, json.dumps(document, indent=2))

    def config(self, document: dict) -> Path:
        return self.json(".buildcheck/config.json", document)
