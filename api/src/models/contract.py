"""
Protocol Buffers wire contract for conversion messages.

The message classes are built from a descriptor at import time, which is
equivalent to compiling::

    syntax = "proto3";
    package tempconvert.contract;

    message TempConvertRequest { double fahrenheit = 1; }
    message TempConvertReply   { double celsius    = 1; }

A private descriptor pool keeps these definitions isolated from any other
protobuf schema loaded in the process.
"""

from typing import Type

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

PROTO_PACKAGE = "tempconvert.contract"
PROTO_FILE_NAME = "tempconvert/contract/contract.proto"

# message name -> its single double field
_MESSAGE_FIELDS = {
    "TempConvertRequest": "fahrenheit",
    "TempConvertReply": "celsius",
}


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=PROTO_FILE_NAME,
        package=PROTO_PACKAGE,
        syntax="proto3",
    )
    for message_name, field_name in _MESSAGE_FIELDS.items():
        message_proto = file_proto.message_type.add(name=message_name)
        message_proto.field.add(
            name=field_name,
            json_name=field_name,
            number=1,
            type=descriptor_pb2.FieldDescriptorProto.TYPE_DOUBLE,
            label=descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL,
        )
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())


def _message_class(message_name: str) -> Type[Message]:
    descriptor = _pool.FindMessageTypeByName(f"{PROTO_PACKAGE}.{message_name}")
    return message_factory.GetMessageClass(descriptor)


TempConvertRequest: Type[Message] = _message_class("TempConvertRequest")
TempConvertReply: Type[Message] = _message_class("TempConvertReply")

__all__ = ["TempConvertRequest", "TempConvertReply", "PROTO_PACKAGE"]
