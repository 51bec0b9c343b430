"""
Per-request bootstrap for page handlers.

Every page depends on ``start_request``, which prepares the state a page
script expects to find: the session (when the deployment profile starts
one), the template engine, an open database connection and the template
variables with ``pageTitle`` already set.

If the database cannot be reached the dependency raises
``DatabaseConnectionError`` and the page handler never runs.
"""

from dataclasses import dataclass
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from apv.config import Settings, get_settings
from apv.core.logging import get_logger
from apv.db.database import get_database
from apv.templating import TemplateEngine, TemplateVars, get_templates

logger = get_logger("apv.bootstrap")

SESSION_STARTED_KEY = "started"
SESSION_VIEWS_KEY = "page_views"


@dataclass
class RequestContext:
    db: Session
    templates: TemplateEngine
    tpl_vars: TemplateVars
    session_started: bool = False


def start_session(request: Request) -> bool:
    """
    Start the session if the session middleware is installed.

    Returns whether a session is active for this request.
    """
    if "session" not in request.scope:
        return False
    session = request.session
    session.setdefault(SESSION_STARTED_KEY, True)
    session[SESSION_VIEWS_KEY] = session.get(SESSION_VIEWS_KEY, 0) + 1
    return True


def start_request(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Iterator[RequestContext]:
    session_started = start_session(request)
    templates = get_templates(request)

    # Raises DatabaseConnectionError; nothing below runs in that case
    db = get_database(request).connect()

    tpl_vars = TemplateVars()
    tpl_vars["pageTitle"] = settings.PAGE_TITLE

    logger.debug(
        "Request bootstrapped",
        path=request.url.path,
        session_started=session_started,
        correlation_id=getattr(request.state, "correlation_id", None),
    )

    try:
        yield RequestContext(
            db=db, templates=templates, tpl_vars=tpl_vars, session_started=session_started
        )
    finally:
        db.close()
