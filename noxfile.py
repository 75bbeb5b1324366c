import nox

nox.needs_version = ">=2024.4.15"
nox.options.default_venv_backend = "uv|virtualenv"


@nox.session(python=["3.8", "3.9", "3.10", "3.11", "3.12"])
@nox.parametrize("editable", [True, False])
def tests(session: nox.Session, editable: bool) -> None:
    session.install("-e.[test]" if editable else ".[test]")
    session.run("pytest", "--timeout=30", "tests", *session.posargs)


@nox.session
def installed(session: nox.Session) -> None:
    session.install(".")
    # The package must import without any of the test dependencies.
    session.run("python", "-c", "import mimetree; mimetree.parse_message(b'')")
