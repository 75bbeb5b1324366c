import os
import re
import sys

from invoke import run, task

version_file = os.path.join("mimetree", "__init__.py")
version_regex = re.compile(r"((?:\d+)\.(?:\d+)\.(?:\d+))")


class g:
    test_success = False


@task
def test(ctx, all=False):
    test_cmd = [
        "pytest",  # Test command
        "--cov-report term-missing",  # Print only uncovered lines to stdout
        "--cov mimetree",  # Test only this module
        "--timeout=30",  # Each test should timeout after 30 sec
    ]

    # Test in this directory
    test_cmd.append("tests")

    res = run(" ".join(test_cmd), pty=False)
    g.test_success = res.ok


@task
def version(ctx):
    with open(version_file) as f:
        print(version_regex.search(f.read()).group(1))


@task(pre=[test])
def fuzz(ctx, target="fuzz_message", runs=10000):
    if not g.test_success:
        print("Tests must pass before fuzzing!", file=sys.stderr)
        return

    run(f"python fuzz/{target}.py -runs={runs}", pty=False)
