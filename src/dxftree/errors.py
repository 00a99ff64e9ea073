from __future__ import annotations


class DXFError(ValueError):
    pass


class MalformedRecordError(DXFError):
    def __init__(self, line_number: int, text: str) -> None:
        super().__init__(f"invalid group code at line {line_number}: {text!r}")
        self.line_number = line_number
        self.text = text


class UnbalancedStructureError(DXFError):
    def __init__(self, marker: str, line_number: int) -> None:
        super().__init__(f"{marker} at line {line_number} has no matching open container")
        self.marker = marker
        self.line_number = line_number


class MalformedFieldValueError(DXFError):
    def __init__(self, kind: str, failures: list[tuple[int, str, str]]) -> None:
        summary = ", ".join(f"{attr}[{code}]={value!r}" for code, value, attr in failures)
        super().__init__(f"malformed field values in {kind}: {summary}")
        self.kind = kind
        self.failures = failures
