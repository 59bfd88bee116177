"""Tests for the JS/TS module parser."""

from collectionkit.parsers.ts_parser import TSParser, export_specifiers


SOURCE = '''import React, { useState } from 'react'
import type { Props } from './types'

/** A button. */
export function Button() {
  return useState(0)
}

const helper = 1, other = 2
export { helper as aliased }
export * from './other'
export default Button
'''


class TestParseModule:
    def setup_method(self):
        self.module = TSParser().parse_module(SOURCE, "Button.tsx")

    def test_declaration_kinds(self):
        kinds = [declaration.kind for declaration in self.module.declarations]
        assert kinds == ["import", "import", "function", "variable", "export", "export", "variable"]

    def test_import_bindings(self):
        first, second = self.module.declarations[:2]
        assert first.names == ["React", "useState"]
        assert second.names == ["Props"]

    def test_exported_names(self):
        assert self.module.exported_names() == {"Button", "aliased", "default"}

    def test_declaration_comments(self):
        button = self.module.find_declarations("Button")[0]
        assert button.exported
        assert [comment.text.decode() for comment in button.comments] == ["/** A button. */"]
        assert "useState" in button.references

    def test_variable_names(self):
        declaration = self.module.find_declarations("helper")[0]
        assert declaration.names == ["helper", "other"]
        assert not declaration.exported

    def test_export_specifiers(self):
        export_list = next(d for d in self.module.declarations if d.export_list)
        assert export_specifiers(export_list.node) == [("helper", "aliased")]

    def test_re_export(self):
        assert any(declaration.re_export for declaration in self.module.declarations)


def test_get_imports():
    assert TSParser().get_imports(SOURCE, "Button.tsx") == ["react", "./types"]


def test_destructured_bindings():
    module = TSParser().parse_module("const { a, b: renamed, c = fallback } = source", "value.js")
    declaration = module.declarations[0]
    assert declaration.names == ["a", "renamed", "c"]
    assert "fallback" in declaration.references
