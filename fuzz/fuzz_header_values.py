import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from mimetree.grammar import parse_content_disposition, parse_content_type, parse_params


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    target = fdp.PickValueInList([parse_content_type, parse_content_disposition, parse_params])
    target(fdp.ConsumeRandomString())


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
