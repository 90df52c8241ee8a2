# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
concat_sources: merge the C# files of one project into a single file.

Stages:
  parser:    one file's text -> SourceUnit (directives + namespaced members)
  merge:     SourceUnits in file order -> MergeState
  emit:      MergeState -> combined text (normalize re-indents each member)
  concat:    discovery, abort/keep-going policy, atomic write
"""

from concat_sources.emit import emit
from concat_sources.merge import MergeState, NamespaceGroup, merge
from concat_sources.parser import ParseError, SourceUnit, parse_file, parse_source

__all__ = [
	"MergeState",
	"NamespaceGroup",
	"ParseError",
	"SourceUnit",
	"emit",
	"merge",
	"parse_file",
	"parse_source",
]
