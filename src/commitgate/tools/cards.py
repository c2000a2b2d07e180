"""Social media card generation."""

import logging

from commitgate.tools.base import BaseTool, UnavailableTool

log = logging.getLogger(__name__)


class CardGenerator(BaseTool):
    """Renders a preview image for a content page.

    The generator writes the image under `output_dir`, updates the page's
    front matter with it (`-u`) and prints the image path relative to the
    static directory.
    """

    NAME = "social-cards"
    DEFAULT_COMMAND = "social-cards-zola"

    def __init__(self, command=None, cwd=None, output_dir="static/img/social_cards", base_url=None):
        super().__init__(command=command, cwd=cwd)
        self.output_dir = output_dir
        self.base_url = base_url

    def generate(self, path):
        """Generate the card for a content file.

        Returns:
            str: Image path relative to the static directory.
        """
        args = ["-o", self.output_dir]
        if self.base_url:
            args += ["-b", self.base_url]
        args += ["-u", "-p", "-i", path]
        return self.run(args, text=True).strip()


class UnavailableCardGenerator(UnavailableTool, CardGenerator):
    def generate(self, path):
        log.debug("No social card generator found, skipping %s", path)
        return None
