"""Input collection for credential setup using prompt-toolkit."""

from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.styles import Style
from prompt_toolkit.validation import ValidationError, Validator

from xeet.utils.logging import async_log_call, get_logger

logger = get_logger(__name__)


class NotEmptyValidator(Validator):
    """Rejects blank input."""

    def validate(self, document):
        if not document.text.strip():
            raise ValidationError(
                message="Cannot be empty",
                cursor_position=len(document.text)
            )


class AuthInputManager:
    """Manages prompts for the auth setup flow."""

    def __init__(self):
        self.session = PromptSession()
        self.style = Style.from_dict({
            'prompt': 'cyan bold',
            'bottom-toolbar': 'bg:#333333 #ffffff',
            'validation-toolbar': 'bg:#aa0000 #ffffff',
        })

    @async_log_call
    async def prompt_value(self, label: str, secret: bool = False) -> Optional[str]:
        """Prompt for a required value; secrets are masked.

        Returns:
            The stripped value, or None if cancelled
        """
        try:
            result = await self.session.prompt_async(
                f'{label}: ',
                is_password=secret,
                validator=NotEmptyValidator(),
                validate_while_typing=False,
                style=self.style,
                bottom_toolbar="Ctrl+C to cancel"
            )
            return result.strip()

        except (KeyboardInterrupt, EOFError):
            logger.info(f"{label} input cancelled by user")
            return None

    @async_log_call
    async def choose(self, label: str, options: List[str]) -> Optional[int]:
        """Prompt for a numbered choice.

        Returns:
            Zero-based index of the chosen option, or None if cancelled
        """
        choices = "\n".join(f"  {i}) {option}" for i, option in enumerate(options, 1))
        valid = {str(i) for i in range(1, len(options) + 1)}

        validator = Validator.from_callable(
            lambda text: text.strip() in valid,
            error_message=f"Enter a number from 1 to {len(options)}",
            move_cursor_to_end=True,
        )

        try:
            result = await self.session.prompt_async(
                f'{label}\n{choices}\n> ',
                validator=validator,
                validate_while_typing=False,
                style=self.style,
            )
            return int(result.strip()) - 1

        except (KeyboardInterrupt, EOFError):
            logger.info("Selection cancelled by user")
            return None
