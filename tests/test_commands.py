"""
Tests for Command Validation

Run with: python -m pytest tests/test_commands.py -v
"""

import pytest
from resp_client.protocol.commands import CommandType, KnownCommandValidator
from resp_client.protocol.errors import ArityError, UnknownCommandError


class TestCommandType:
    """Test the CommandType table."""

    def test_lookup_case_insensitive(self):
        """Test command names match in any case."""
        for variant in ["get", "GET", "Get", "gEt"]:
            assert CommandType.lookup(variant) is CommandType.GET, f"Failed for '{variant}'"

    def test_lookup_unknown(self):
        """Test unknown names give None."""
        assert CommandType.lookup("NOPE") is None

    def test_members_are_distinct(self):
        """Test commands sharing an arity are not aliases of each other."""
        assert CommandType.ECHO is not CommandType.GET
        assert CommandType.lookup("ECHO").command == "ECHO"

    def test_exact_arity(self):
        """Test a positive arity must match exactly."""
        assert CommandType.GET.accepts(2)
        assert not CommandType.GET.accepts(1)
        assert not CommandType.GET.accepts(3)

    def test_minimum_arity(self):
        """Test a negative arity is a minimum."""
        assert not CommandType.DEL.accepts(1)
        assert CommandType.DEL.accepts(2)
        assert CommandType.DEL.accepts(10)

    def test_ping_takes_optional_message(self):
        """Test PING accepts zero or one argument."""
        assert CommandType.PING.accepts(1)
        assert CommandType.PING.accepts(2)


class TestKnownCommandValidator:
    """Test KnownCommandValidator."""

    def test_known_command(self):
        """Test a well-formed known command passes."""
        KnownCommandValidator().validate(["SET", "key", "value"])

    def test_unknown_command(self):
        """Test an unknown command is rejected."""
        with pytest.raises(UnknownCommandError):
            KnownCommandValidator().validate(["FROB", "key"])

    def test_wrong_arity(self):
        """Test a known command with too few arguments is rejected."""
        with pytest.raises(ArityError):
            KnownCommandValidator().validate(["GET"])

    def test_arity_message_names_command(self):
        """Test the arity error names the command in lowercase."""
        with pytest.raises(ArityError, match="'append'"):
            KnownCommandValidator().validate(["APPEND", "key"])

    def test_empty_tokens_pass(self):
        """Test an empty command is left to the server."""
        KnownCommandValidator().validate([])

    def test_extra_commands(self):
        """Test extra commands are accepted with any arity."""
        validator = KnownCommandValidator(extra_commands=["frob"])
        validator.validate(["FROB"])
        validator.validate(["frob", "a", "b", "c"])
