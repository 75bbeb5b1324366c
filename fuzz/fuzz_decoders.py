import io
import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from mimetree.decoders import Base64Decoder, QuotedPrintableDecoder, decode_body
    from mimetree.exceptions import DecodeError


def fuzz_base64_decoder(fdp: EnhancedDataProvider) -> None:
    decoder = Base64Decoder(io.BytesIO())
    decoder.write(fdp.ConsumeRandomBytes())
    decoder.finalize()


def fuzz_quoted_decoder(fdp: EnhancedDataProvider) -> None:
    decoder = QuotedPrintableDecoder(io.BytesIO())
    decoder.write(fdp.ConsumeRandomBytes())
    decoder.finalize()


def fuzz_decode_body(fdp: EnhancedDataProvider) -> None:
    encoding = fdp.PickValueInList(["base64", "quoted-printable", "7bit", "x-unknown"])
    raw = fdp.ConsumeRandomBytes()
    decoded = decode_body(encoding, raw)
    as_text = decode_body(encoding, raw.decode("latin-1"))
    assert decoded.decode("latin-1") == as_text


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [fuzz_base64_decoder, fuzz_quoted_decoder, fuzz_decode_body]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except DecodeError:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
