#!/usr/bin/env python3
"""
Development scripts for the plugbox project.

Each command shells out through uv, e.g. ``python scripts.py check``.
"""

import subprocess
import sys
from pathlib import Path

CHECKS: dict[str, list[tuple[list[str], str]]] = {
    "test": [(["uv", "run", "pytest", "-v"], "Tests")],
    "lint": [
        (["uv", "run", "ruff", "check", "."], "Ruff linting"),
        (["uv", "run", "ruff", "format", "--check", "."], "Ruff formatting"),
    ],
    "typecheck": [
        (["uv", "run", "mypy", "src/plugbox/"], "MyPy type checking"),
        (["uv", "run", "pyright", "src/plugbox/"], "Pyright type checking"),
    ],
}


def run_command(cmd: list[str], description: str) -> bool:
    """Run a command and return True if successful."""
    print(f"\n🔄 {description}...")
    print(f"Running: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, check=True, capture_output=False)
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed with exit code {e.returncode}")
        return False
    except FileNotFoundError:
        print(f"❌ Command not found: {cmd[0]}")
        return False

    print(f"✅ {description} passed")
    return True


def demo_commands() -> list[tuple[list[str], str]]:
    """One command per runnable script in demo/."""
    return [
        (["uv", "run", "python", str(path)], f"Demo: {path.name}")
        for path in sorted(Path("demo").glob("*.py"))
        if not path.name.startswith("_")
    ]


def run_checks(name: str) -> int:
    commands = demo_commands() if name == "demos" else CHECKS[name]
    results = [run_command(cmd, description) for cmd, description in commands]
    return 0 if all(results) else 1


def check_all() -> int:
    """Run tests, linting, type checking and demos, then print a summary."""
    print("🚀 Running all checks for plugbox")

    results = {}
    for name in [*CHECKS, "demos"]:
        print(f"\n{'=' * 20} {name} {'=' * 20}")
        results[name] = run_checks(name) == 0

    print(f"\n{'=' * 20} SUMMARY {'=' * 20}")
    for name, passed in results.items():
        print(f"{name:<15} {'✅ PASS' if passed else '❌ FAIL'}")

    if all(results.values()):
        print("\n🎉 All checks passed!")
        return 0
    print("\n💥 Some checks failed. Please fix the issues above.")
    return 1


if __name__ == "__main__":
    commands = [*CHECKS, "demos", "check"]
    if len(sys.argv) != 2 or sys.argv[1] not in commands:
        print(f"Available commands: {', '.join(commands)}")
        print("Usage: python scripts.py <command>")
        sys.exit(1)

    command = sys.argv[1]
    sys.exit(check_all() if command == "check" else run_checks(command))
