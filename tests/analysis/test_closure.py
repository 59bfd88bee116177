"""Tests for export closure extraction."""

import pytest

from collectionkit.analysis.closure import extract_export_closure
from collectionkit.errors import ExtractionError
from collectionkit.parsers.ts_parser import TSParser


BUTTON_SOURCE = '''import React, { useState, useEffect } from 'react'
import { css } from './styles'
import './global.css'

const SIZE = 'md'

function useSize() {
  return SIZE
}

/** Internal helper. */
export function unused() {
  return useEffect
}

export const theme = { color: 'red' }

/** A button. */
export function Button() {
  const [count] = useState(0)
  return theme.color + useSize() + count
}

export * from './other'
'''

EXPECTED_BUTTON = '''import { useState } from 'react';

import './global.css'

const SIZE = 'md'

function useSize() {
  return SIZE
}

const theme = { color: 'red' }

export function Button() {
  const [count] = useState(0)
  return theme.color + useSize() + count
}'''


def _parse(source: str, file_path: str = "Button.tsx"):
    return TSParser().parse_module(source, file_path)


class TestExtractExportClosure:
    def test_button_closure(self):
        assert extract_export_closure(_parse(BUTTON_SOURCE), "Button") == EXPECTED_BUTTON

    def test_unreferenced_code_removed(self):
        closure = extract_export_closure(_parse(BUTTON_SOURCE), "Button")

        assert "unused" not in closure
        assert "useEffect" not in closure
        assert "./styles" not in closure
        assert "./other" not in closure
        assert "A button." not in closure

    def test_idempotent(self):
        first = extract_export_closure(_parse(BUTTON_SOURCE), "Button")
        second = extract_export_closure(_parse(first), "Button")
        assert second == first

    def test_module_not_mutated(self):
        module = _parse(BUTTON_SOURCE)
        count = len(module.declarations)

        extract_export_closure(module, "Button")

        assert module.source == BUTTON_SOURCE
        assert len(module.declarations) == count

    def test_dependency_keeps_comments(self):
        source = "// Default size.\nconst SIZE = 1\n\nexport const Box = () => SIZE\n"
        closure = extract_export_closure(_parse(source), "Box")
        assert closure == "// Default size.\nconst SIZE = 1\n\nexport const Box = () => SIZE"

    def test_transitive_dependencies(self):
        source = "const a = 1\nconst b = a + 1\nconst c = b + 1\nconst d = 4\nexport const e = c\n"
        closure = extract_export_closure(_parse(source, "chain.ts"), "e")
        assert closure == "const a = 1\n\nconst b = a + 1\n\nconst c = b + 1\n\nexport const e = c"

    def test_follows_member_assignments(self):
        source = "export function Button() {}\nButton.displayName = 'Button'\n"
        closure = extract_export_closure(_parse(source), "Button")
        assert closure == "export function Button() {}\n\nButton.displayName = 'Button'"

    def test_aliased_export(self):
        source = "const local = 1\nconst other = 2\nexport { local as renamed, other }\n"
        assert extract_export_closure(_parse(source, "alias.ts"), "renamed") == "const local = 1"

    def test_namespace_import_kept(self):
        source = "import * as path from 'path'\nexport const join = (a) => path.join(a)\n"
        closure = extract_export_closure(_parse(source, "join.ts"), "join")
        assert closure.startswith("import * as path from 'path'")


class TestExtractExportClosureErrors:
    def test_not_exported(self):
        with pytest.raises(ExtractionError, match="missing"):
            extract_export_closure(_parse(BUTTON_SOURCE), "missing")

    def test_re_exported_only(self):
        with pytest.raises(ExtractionError):
            extract_export_closure(_parse("export { x } from './x'\n"), "x")

    def test_multiple_declarators(self):
        with pytest.raises(ExtractionError, match="Multiple declarations"):
            extract_export_closure(_parse("export const a = 1, b = 2\n"), "a")
