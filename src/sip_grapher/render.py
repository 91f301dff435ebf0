"""Build mscgen sequence-diagram text for a call.

The output is the request body accepted by the diagram service: two fixed
endpoints, a header box with caller/callee identity, one arrow per packet
and a footer box with the first and last packet times. Line breaks inside
labels use mscgen's two-character "\\n" escape.
"""

from sip_grapher.models import CallRecord, Direction

BREAK = "\\n"


def _text(value: str | None) -> str:
    if value is None:
        return ""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def call_summary(record: CallRecord) -> str:
    """Label for the header box of the diagram."""
    parts = [
        " ---- CALL DATA ---- ",
        f"To: {_text(record.callee_name)} {_text(record.callee_number)}",
        f"Hardware: {_text(record.dest_agent_label)}",
        "",
        f"FROM: {_text(record.caller_name)} {_text(record.caller_number)}",
        f"Hardware: {_text(record.origin_agent_label)}",
    ]
    return BREAK.join(parts)


def build_msc(
    record: CallRecord,
    width: int = 650,
    local_label: str = "PBX",
    remote_label: str = "EXTERNAL",
) -> str:
    """Render one call as mscgen text.

    Args:
        record: Call to render
        width: Diagram width in pixels
        local_label: Name of the switch-side entity
        remote_label: Name of the far-side entity

    Returns:
        mscgen source for the call
    """
    lines = [
        "msc {",
        f'width = "{width}";',
        f"{local_label},{remote_label};",
        f'{local_label} rbox {remote_label} [ label = "{call_summary(record)}{BREAK}"];',
        "|||;",
    ]

    for packet in record.packets:
        arrow = "=>" if packet.direction is Direction.OUTBOUND else "<="
        label = f"{_text(packet.method)}{BREAK}{_text(packet.timestamp)}"
        lines.append(f'{local_label} {arrow} {remote_label} [ label = "{label}"];')
        lines.append("|||;")

    footer = (
        f"{BREAK}Call started  at : {_text(record.first_timestamp)}{BREAK}"
        f"Call complete at : {_text(record.last_timestamp)}{BREAK}"
    )
    lines.append(f'{local_label} rbox {remote_label} [ label = "{footer}" ];')
    lines.append("}")
    return "\n".join(lines)
