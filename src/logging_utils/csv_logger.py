"""CSV logging for action outcomes."""
import logging
from datetime import datetime


def sanitize_for_csv(text: str) -> str:
    """Sanitize text for safe CSV storage

    Handles:
    - Newlines and carriage returns (break CSV formatting)
    - Quotes and commas (CSV delimiters)
    - Formula injection (security risk in Excel/Sheets)
    """
    if not text:
        return ''

    text = text.replace('\n', ' | ').replace('\r', '')
    text = text.replace('\t', ' ')

    text = text.replace('"', "'")
    text = text.replace(',', ';')

    if text[0] in ('=', '+', '-', '@'):
        text = "'" + text

    return text


class CSVLogger:
    """Writes one CSV row per action outcome."""

    @staticmethod
    def log_rejected_action(
        logger: logging.Logger,
        tick: int,
        username: str,
        agent_kind: str,
        error_type: str,
        details: str,
        attempted_action: str,
        debug: bool = False
    ) -> None:
        """
        Log a rejected action as a CSV row.

        Args:
            logger: CSV logger instance to use
            tick: Market tick at which the action was resolved
            username: Acting agent
            agent_kind: Participant kind (user or scripted agent class)
            error_type: Exception class name
            details: Error message
            attempted_action: Serialized action
            debug: If True, also print a human-readable line
        """
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')
        row = ",".join([
            timestamp,
            str(tick),
            sanitize_for_csv(username),
            sanitize_for_csv(agent_kind),
            sanitize_for_csv(error_type),
            sanitize_for_csv(details),
            sanitize_for_csv(attempted_action),
        ])
        logger.info(row)

        for handler in logger.handlers:
            handler.flush()

        if debug:
            print(f"Tick {tick}: {username} ({agent_kind}) {error_type}: {details} [{attempted_action}]")

    @staticmethod
    def log_resolved_action(
        logger: logging.Logger,
        tick: int,
        username: str,
        action_kind: str,
        cash_after: int
    ) -> None:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')
        logger.info(f"{timestamp},{tick},{sanitize_for_csv(username)},{action_kind},{cash_after}")
