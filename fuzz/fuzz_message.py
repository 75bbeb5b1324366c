import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from mimetree.consistency import parse_message_checked
    from mimetree.types import LineMode

config = {"CONSISTENCY_LOG_PATH": None}


def parse_raw_message(fdp: EnhancedDataProvider) -> None:
    mode = fdp.PickValueInList(list(LineMode))
    parse_message_checked(fdp.ConsumeRandomBytes(), mode, config=config)


def parse_multipart_body(fdp: EnhancedDataProvider) -> None:
    boundary = fdp.ConsumeBoundary()
    headers = {"Content-Type": f'multipart/mixed; boundary="{boundary}"'}
    body = (
        f"--{boundary}\r\n"
        f"Content-Type: multipart/alternative; boundary={boundary}\r\n\r\n"
        f"{fdp.ConsumeRandomString()}\r\n"
        f"--{boundary}--\r\n"
    )
    parse_message_checked(body.encode("latin1", errors="ignore"), headers=headers, config=config)


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [parse_raw_message, parse_multipart_body]
    target = fdp.PickValueInList(targets)

    # Malformed input must never raise: the parser repairs it instead.
    target(fdp)


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
