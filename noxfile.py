import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project and its test extra into the nox virtualenv."""
    session.run("poetry", "install", "--all-extras", external=True)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_domain(session: nox.Session) -> None:
    """Aggregate rules only: no command processing, no HTTP."""
    _install(session)
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_api(session: nox.Session) -> None:
    """HTTP surface through FastAPI's TestClient."""
    _install(session)
    session.run("pytest", "-m", "integration", *session.posargs)
