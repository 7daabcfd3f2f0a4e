"""Code formatter for generated artifacts."""

from .models import Framework


class CodeFormatter:
    """Normalises whitespace in generated code and documents."""

    def __init__(self, framework: Framework):
        """Initialize formatter for a specific framework."""
        self.framework = framework

    def format_code(self, code: str) -> str:
        """Format generated output.

        Args:
            code: Raw generated code

        Returns:
            Formatted code
        """
        # Remove trailing whitespace from each line
        lines = [line.rstrip() for line in code.split("\n")]

        # Remove excessive blank lines (max 2 consecutive)
        formatted_lines = []
        blank_count = 0
        for line in lines:
            if line == "":
                blank_count += 1
                if blank_count <= 2:
                    formatted_lines.append(line)
            else:
                blank_count = 0
                formatted_lines.append(line)

        # Ensure file ends with exactly one newline
        result = "\n".join(formatted_lines).rstrip("\n")
        return result + "\n"
