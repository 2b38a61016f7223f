from __future__ import annotations

import argparse
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from protoc_gen_setters.errors import ConfigError, GenerationError, MalformedDescriptorError
from protoc_gen_setters.generator.file_assembler import generate_files
from protoc_gen_setters.options import parse_parameter
from protoc_gen_setters.parser.descriptor_loader import DescriptorLoader


def generate_code(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Run the setters pipeline and return a populated response message.

    Failures are reported through ``response.error`` with no files, which
    is how protoc expects a plugin to reject its input.
    """
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        options = parse_parameter(request.parameter)
        loader = DescriptorLoader(request.proto_file, request.file_to_generate, options)
        files = loader.load()
        generated = generate_files(files, loader.files.values())
    except (ConfigError, MalformedDescriptorError, GenerationError) as e:
        response.error = str(e)
        return response

    for g in generated:
        response_file = response.file.add()
        response_file.name = g.filename
        response_file.content = g.content()
    return response


def run_plugin(stdin: BinaryIO, stdout: BinaryIO) -> None:
    """Read a CodeGeneratorRequest from ``stdin`` and answer on ``stdout``."""
    request = plugin_pb2.CodeGeneratorRequest()
    payload = stdin.read()
    if payload:
        request.ParseFromString(payload)
    response = generate_code(request)
    stdout.write(response.SerializeToString())
    stdout.flush()


def _find_proto_files(root: str) -> List[str]:
    files = [str(p) for p in Path(root).rglob("*.proto")]
    # Sort for deterministic output
    return sorted(files)


def _proto_name(proto_path: str, includes: Sequence[str]) -> str:
    """Name protoc gives ``proto_path``: its path relative to an include dir."""
    abs_path = os.path.abspath(proto_path)
    for inc in includes:
        abs_inc = os.path.abspath(inc)
        if abs_path.startswith(abs_inc + os.sep):
            return Path(os.path.relpath(abs_path, abs_inc)).as_posix()
    return Path(proto_path).name


def build_descriptor_set(
    proto_paths: Sequence[str],
    includes: Sequence[str],
) -> descriptor_pb2.FileDescriptorSet:
    """Invoke protoc to get a descriptor set including all imports."""
    # de-dup while preserving order
    seen = set()
    inc_args: List[str] = []
    for inc in includes:
        if inc and inc not in seen:
            seen.add(inc)
            inc_args.extend(["-I", inc])

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = ["protoc", "--include_imports", f"--descriptor_set_out={desc_path}"] + inc_args + list(proto_paths)
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise RuntimeError("'protoc' not found. Please install Protocol Buffers compiler and ensure it is in PATH.") from e
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}") from e

        fds = descriptor_pb2.FileDescriptorSet()
        with open(desc_path, "rb") as f:
            fds.ParseFromString(f.read())
    return fds


def generate(
    proto_path: str,
    out_dir: str,
    includes: Optional[Sequence[str]] = None,
    parameter: str = "",
) -> List[str]:
    """Generate setters for a .proto file or a directory of them into ``out_dir``.

    Returns the list of written file paths.
    """
    if os.path.isdir(proto_path):
        proto_paths = _find_proto_files(proto_path)
        default_include = proto_path
    else:
        proto_paths = [proto_path]
        default_include = os.path.dirname(proto_path) or "."
    if not proto_paths:
        return []
    includes = list(includes or [default_include])

    fds = build_descriptor_set(proto_paths, includes)
    request = plugin_pb2.CodeGeneratorRequest(
        file_to_generate=[_proto_name(p, includes) for p in proto_paths],
        parameter=parameter,
        proto_file=fds.file,
    )
    response = generate_code(request)
    if response.error:
        raise RuntimeError(response.error)

    written: List[str] = []
    for response_file in response.file:
        out_path = os.path.join(out_dir, response_file.name)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(response_file.content)
        written.append(out_path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Generate Go setter methods for protoc-gen-go messages. "
            "Without --proto, runs as a protoc plugin on stdin/stdout."
        ),
    )
    parser.add_argument("--proto", help="Path to a .proto file or a directory containing .proto files (recursively)")
    parser.add_argument("--out", help="Output directory for generated .pb.setters.go file(s)")
    parser.add_argument("-I", "--include", action="append", default=[], help="Import search path passed to protoc (repeatable)")
    parser.add_argument("--param", default="", help="Plugin parameter string, e.g. paths=source_relative")
    args = parser.parse_args(argv)

    if not args.proto:
        run_plugin(sys.stdin.buffer, sys.stdout.buffer)
        return

    if not args.out:
        parser.error("--out is required together with --proto")

    try:
        generated = generate(args.proto, args.out, args.include, args.param)
    except RuntimeError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    if not generated:
        print(f"No setters generated for: {args.proto}")
        return
    print("Generated:\n" + "\n".join(generated))


if __name__ == "__main__":
    main()
