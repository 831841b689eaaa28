"""
Test runner configuration and utilities.
"""

import importlib.util
import os
import sys

import pytest

# Add the parent directory to the Python path so tests can import the main package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def run_all_tests():
    """Run all tests in the test suite."""
    args = [
        "-v",
        "--tb=short",
        "tests/",
    ]

    if importlib.util.find_spec("pytest_cov") is not None:
        args.extend(["--cov=health_audit", "--cov-report=term-missing"])

    return pytest.main(args)


def run_specific_test(test_file):
    """Run a specific test file."""
    return pytest.main(["-v", f"tests/{test_file}"])


def run_test_class(test_file, test_class):
    """Run a specific test class."""
    return pytest.main(["-v", f"tests/{test_file}::{test_class}"])


if __name__ == "__main__":
    sys.exit(run_all_tests())
