"""Tests for formatting-preserving POM edits."""

import pytest

from errors import DescriptorEditError
from descriptor.editor import (
    Indent,
    PrependProperty,
    SetDependencyVersion,
    SetElementText,
    SetProperty,
    apply_edits,
    detect_indent,
    find,
    parse,
    property_names,
    read_text,
)

POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <!-- keep me -->
  <version>1.0-SNAPSHOT</version>
  <properties>
    <jenkins.version>2.60</jenkins.version>
    <empty/>
  </properties>
  <dependencies>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>lib</artifactId>
      <version>1.0</version>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>other</artifactId>
      <version>1.0</version>
    </dependency>
  </dependencies>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>org.example</groupId>
        <artifactId>lib</artifactId>
        <version  >1.0</version>
      </dependency>
    </dependencies>
  </dependencyManagement>
</project>
"""


class TestDetectIndent:
    """Indentation detection."""

    @pytest.mark.parametrize("text,expected", [
        ("abc", Indent(0, " ")),
        ("  abc", Indent(2, " ")),
        ("    abc", Indent(4, " ")),
        ("\t\tabc", Indent(2, "\t")),
        ("\tabc", Indent(1, "\t")),
        ("\n\n    <a/>\n  ", Indent(4, " ")),
    ])
    def test_cases(self, text, expected):
        """Test indent detection."""
        assert detect_indent(text) == expected


class TestParse:
    """The span tree."""

    def test_paths(self):
        """Test path lookup."""
        root = parse(POM)
        assert root.name == "project"
        assert len(find(root, "/project/dependencies/dependency")) == 2
        assert read_text(root, POM, "/project/version") == "1.0-SNAPSHOT"
        assert read_text(root, POM, "/project/missing") is None
        assert property_names(root) == ["jenkins.version", "empty"]

    def test_malformed(self):
        """Test malformed documents are rejected."""
        with pytest.raises(DescriptorEditError):
            parse("<project><version></project>")


class TestEdits:
    """Individual edits keep everything else intact."""

    def test_set_element_text(self):
        """Test replacing element text."""
        result = apply_edits(POM, [SetElementText("/project/version", "${revision}${changelist}")])

        assert "<version>${revision}${changelist}</version>" in result
        assert "<!-- keep me -->" in result
        assert result.replace("${revision}${changelist}", "1.0-SNAPSHOT") == POM

    def test_missing_element(self):
        """Test editing a missing element fails."""
        with pytest.raises(DescriptorEditError):
            apply_edits(POM, [SetElementText("/project/name", "x")])

    def test_set_property(self):
        """Test setting an existing property."""
        result = apply_edits(POM, [SetProperty("jenkins.version", "2.150")])
        assert "<jenkins.version>2.150</jenkins.version>" in result

    def test_set_empty_element(self):
        """Test setting text of an empty element."""
        result = apply_edits(POM, [SetProperty("empty", "a&b")])
        assert "<empty>a&amp;b</empty>" in result

    def test_prepend_property(self):
        """Test properties are prepended with matching indentation."""
        result = apply_edits(POM, [PrependProperty("changelist", "-SNAPSHOT"), PrependProperty("revision", "1.0")])

        assert (
            "  <properties>\n"
            "    <revision>1.0</revision>\n"
            "    <changelist>-SNAPSHOT</changelist>\n"
            "    <jenkins.version>2.60</jenkins.version>\n"
        ) in result

    def test_prepend_without_properties(self):
        """Test prepending without a properties section fails."""
        with pytest.raises(DescriptorEditError) as excinfo:
            apply_edits("<project><version>1</version></project>", [PrependProperty("revision", "1")])
        assert "failed to find <properties>" in str(excinfo.value)

    def test_set_dependency_version_everywhere(self):
        """Test every matching dependency is updated."""
        result = apply_edits(POM, [SetDependencyVersion("org.example", "lib", "1.1", "1.0")])

        assert result.count("<version>1.1</version>") == 1
        assert "<version  >1.1</version>" in result
        assert result.count("<version>1.0</version>") == 1

    def test_set_dependency_version_old_version_mismatch(self):
        """Test dependencies on another version are left alone."""
        with pytest.raises(DescriptorEditError):
            apply_edits(POM, [SetDependencyVersion("org.example", "lib", "1.1", "0.9")])
