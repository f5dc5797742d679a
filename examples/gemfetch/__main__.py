"""
Fetch a Gemini page, asking which resource to fetch from the server.

Usage: cd examples && PYTHONPATH=.. python -m gemfetch --help
"""

import argparse
import getpass
import logging
import sys
from functools import partial
from typing import List, Optional, Set
from urllib.parse import quote, urljoin

from gemclient import client
from gemclient.client import constants, exceptions


logger = logging.getLogger("gemfetch")

DEFAULT_HOST = "gemini.circumlunar.space"

# Redirects followed before giving up.
MAX_REDIRECTS = 5


class RedirectCycleError(Exception):
    """Raised when the client has been redirected to a page that previously redirected."""


class TooManyRedirectsError(Exception):
    """Raised when the client has followed more than MAX_REDIRECTS redirects."""


# pylint: disable=too-few-public-methods
class Command:
    """
    Fetch command to execute.

    Only 1 command is supported: fetching a resource from a host.
    """

    domain: str
    port: int

    # Logging level. Only DEBUG, INFO, WARNING and ERROR are supported.
    logging_level: int

    follow_redirects: bool

    # Check the server certificate, trusting self-signed ones on first use.
    verify: bool

    timeout: Optional[float]

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        domain: str,
        port: int,
        logging_level: int,
        follow_redirects: bool,
        verify: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__()

        assert logging_level in [
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
        ]
        assert 0 < port < 65536

        self.domain = domain
        self.port = port
        self.logging_level = logging_level
        self.follow_redirects = follow_redirects
        self.verify = verify
        self.timeout = timeout


def _port(value: str) -> int:
    port = int(value)
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535: {value}")
    return port


def _command_from_cli(argv: Optional[List[str]] = None) -> Command:
    """
    Parse CLI arguments as a command.
    :return: parsed command.
    """

    parser = argparse.ArgumentParser(prog="gemfetch")
    parser.add_argument(
        "domain",
        nargs="?",
        default=DEFAULT_HOST,
        help="the domain to connect to (without scheme)",
    )
    parser.add_argument(
        "port",
        nargs="?",
        type=_port,
        default=constants.GEMINI_DEFAULT_PORT,
        help="the port the gemini server runs on",
    )
    parser.add_argument(
        "-v", "--verbosity", action="count", default=0, help="Increase output verbosity"
    )
    parser.add_argument(
        "-L", "--location", action="store_true", help="Follow redirects"
    )
    parser.add_argument(
        "-k",
        "--insecure",
        action="store_true",
        help="Accept any server certificate",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Network timeout in seconds"
    )
    args = parser.parse_args(argv)

    if args.verbosity == 0:
        # Default verbosity.
        logging_level = logging.ERROR
    elif args.verbosity == 1:
        logging_level = logging.WARNING
    elif args.verbosity == 2:
        logging_level = logging.INFO
    else:  # >= 3
        logging_level = logging.DEBUG

    return Command(
        domain=args.domain,
        port=args.port,
        logging_level=logging_level,
        follow_redirects=args.location,
        verify=not args.insecure,
        timeout=args.timeout,
    )


def _absolute_url(base: str, target: str) -> str:
    """
    Resolve a redirect target against the URL that was requested.

    >>> _absolute_url("gemini://foo.dev/a/b", "c")
    'gemini://foo.dev/a/c'
    >>> _absolute_url("gemini://foo.dev/a/b", "gemini://bar.dev/")
    'gemini://bar.dev/'
    """
    if "://" in target:
        return target
    # urljoin only resolves schemes it knows about.
    joined = urljoin(base.replace("gemini://", "http://", 1), target)
    return joined.replace("http://", "gemini://", 1)


def _base_url(domain: str, port: int, resource: str) -> str:
    """
    URL of the first request, used to resolve redirects and answer input requests.

    >>> _base_url("foo.dev", 1965, "/docs/")
    'gemini://foo.dev/docs/'
    >>> _base_url("gemini://foo.dev", 4242, "/")
    'gemini://foo.dev:4242/'
    """
    if domain.startswith(constants.GEMINI_SCHEME):
        domain = domain[len(constants.GEMINI_SCHEME) :]
    if port != constants.GEMINI_DEFAULT_PORT:
        domain = f"{domain}:{port}"
    return f"{constants.GEMINI_SCHEME}{domain}{resource}"


def _read_resource(domain: str) -> str:
    try:
        return input(f"What resource do you want to access on {domain}?: ")
    except EOFError:
        return "/"


def _client_options(command: Command) -> dict:
    cert_store = client.SelfSignedCertFileStore() if command.verify else None
    return dict(cert_store=cert_store, verify=command.verify, timeout=command.timeout)


def _resolve(
    url: str, outcome: client.DispatchOutcome, command: Command, options: dict
) -> client.DispatchOutcome:
    """
    Answer input requests and, if asked to, follow redirects until there is a final outcome.

    :param url: the URL that produced the outcome.
    :param outcome: the outcome of the first request.
    :return: the final outcome.
    :raises RedirectCycleError: client was redirected to page that previously resulted in a
        redirect.
    :raises TooManyRedirectsError: client was redirected too many times.
    """
    visited: Set[str] = {url}
    while True:
        if isinstance(outcome, client.Redirect) and command.follow_redirects:
            new_url = _absolute_url(url, outcome.target)
            if new_url in visited:
                raise RedirectCycleError(
                    f"redirected to {new_url} that previously redirected"
                )
            if len(visited) > MAX_REDIRECTS:
                raise TooManyRedirectsError(
                    f"followed too many ({len(visited) - 1}) redirects"
                )

            logger.debug("following redirect to %s", new_url)
            visited.add(new_url)
            url = new_url
        elif isinstance(outcome, client.InputRequested):
            ask = getpass.getpass if outcome.sensitive else input
            answer = ask(outcome.prompt)
            url = url.split("?", 1)[0] + "?" + quote(answer)
        else:
            break

        outcome = client.fetch(url, **options)

    logger.info("followed %d redirects to end up at %s", len(visited) - 1, url)
    return outcome


def _render(outcome: client.DispatchOutcome) -> int:
    """
    Print the outcome for the user.
    :return: exit code
    """
    err = partial(print, file=sys.stderr)
    status = constants.StatusCode

    if isinstance(outcome, client.Body):
        print(f"Server returned:\n{outcome.text}")
        return 0

    if isinstance(outcome, client.UnsupportedMediaType):
        err(f"I only know how to handle text MIME types, not {outcome.meta}")
    elif isinstance(outcome, client.Redirect):
        err(f"Got a redirect to {outcome.target}")
    elif isinstance(outcome, client.Failure):
        if outcome.status == status.NOT_FOUND:
            err("Page not found!")
        elif outcome.status == status.BAD_REQUEST:
            err("Oops! Looks like we made a bad request :( please try again.")
        elif outcome.status.is_temporary_failure():
            err(
                "We failed - but only for now. This is what the server returned: "
                + outcome.detail
            )
        elif outcome.status.is_permanent_failure():
            err(
                "We failed - big time. This is what the server returned: "
                + outcome.detail
            )
        else:
            err(f"Client certificate problem ({outcome.status.name}): {outcome.detail}")
    else:
        err(f"I don't know how to handle {outcome}")
    return 1


def _configure_logger(logging_level: int, logger: logging.Logger):
    """Configure a logger to use the logging level and our desired output format."""
    # pylint: disable=redefined-outer-name
    logger.setLevel(logging_level)
    handler = logging.StreamHandler()
    handler.setLevel(logging_level)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def execute_command(command: Command) -> int:
    """
    Execute the parsed command.
    :param command: command options including the host to fetch from.
    :return: exit code
    """

    # Configure logging.
    configure_logger = partial(_configure_logger, command.logging_level)
    configure_logger(logger)
    configure_logger(logging.getLogger(constants.LOGGER_NAME))

    resource = _read_resource(command.domain)
    logger.info("requesting %s%s", command.domain, resource)

    options = _client_options(command)
    outcome = client.perform_request(command.domain, command.port, resource, **options)

    url = _base_url(command.domain, command.port, resource)
    return _render(_resolve(url, outcome, command, options))


if __name__ == "__main__":
    # pylint: disable=invalid-name
    cmd = _command_from_cli()
    try:
        exit_code = execute_command(cmd)
    except (exceptions.ClientError, RedirectCycleError, TooManyRedirectsError) as error:
        logger.error("%s", error)
        exit_code = 1
    sys.exit(exit_code)
