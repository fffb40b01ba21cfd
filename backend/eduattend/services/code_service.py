# backend/eduattend/services/code_service.py
"""Session code generation."""
import secrets

# No 0/O or 1/I, so codes survive being read aloud or copied off a board.
DEFAULT_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
DEFAULT_LENGTH = 6

class CodeGenerator:
    """Produces short human-enterable session codes.

    Uniqueness is not checked here; the session controller retries on a
    conflict with another active session.
    """

    def __init__(self, alphabet: str = DEFAULT_ALPHABET, length: int = DEFAULT_LENGTH):
        if length < 1:
            raise ValueError("Code length must be positive")
        if len(set(alphabet)) != len(alphabet):
            raise ValueError("Code alphabet contains duplicate symbols")
        self.alphabet = alphabet
        self.length = length

    @classmethod
    def from_config(cls, config) -> 'CodeGenerator':
        return cls(
            alphabet=config.get('SESSION_CODE_ALPHABET', DEFAULT_ALPHABET),
            length=config.get('SESSION_CODE_LENGTH', DEFAULT_LENGTH)
        )

    def generate(self) -> str:
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))

    @staticmethod
    def normalize(code: str) -> str:
        """Canonical form used for comparison and lookup."""
        return (code or '').strip().upper()
