#!/usr/bin/env python3

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stdout

from packages.tilesheet_core.sheets.prompts import (
    ConsoleConfirmationProvider,
    console_sizes_provider,
    parse_sizes,
)


def _answers(*values: str):
    queue = list(values)

    def read(prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return read


class PromptTests(unittest.TestCase):
    def test_only_the_exact_token_confirms(self) -> None:
        with redirect_stdout(io.StringIO()):
            self.assertTrue(ConsoleConfirmationProvider(_answers(" continue\n")).confirm("go?"))
            self.assertFalse(ConsoleConfirmationProvider(_answers("yes")).confirm("go?"))
            self.assertFalse(ConsoleConfirmationProvider(_answers()).confirm("go?"))

    def test_parse_sizes(self) -> None:
        self.assertEqual(parse_sizes("16 32,32  64"), [16, 32, 64])
        with self.assertRaises(ValueError):
            parse_sizes("")
        with self.assertRaises(ValueError):
            parse_sizes("16 0")
        with self.assertRaises(ValueError):
            parse_sizes("big")

    def test_sizes_provider_asks_again_after_bad_input(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out):
            sizes = console_sizes_provider(_answers("abc", "32 16"))("V")
        self.assertEqual(sizes, [32, 16])
        self.assertIn("Invalid sizes", out.getvalue())


if __name__ == "__main__":
    unittest.main()
