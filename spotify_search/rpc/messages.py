"""Mensajes protobuf de `spotify.SpotifySearch` (ver proto/spotify.proto).

Las clases se construyen al importar a partir de un FileDescriptorProto
equivalente al .proto, registrado en un pool propio.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "spotify"
SERVICE_NAME = f"{PACKAGE}.SpotifySearch"

_Field = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name, number, field_type, repeated=False, type_name=None):
    field = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = f".{PACKAGE}.{type_name}"
    return field


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(name="spotify.proto", package=PACKAGE, syntax="proto3")

    request = fdp.message_type.add(name="GetTracksWithFeaturesRequest")
    _add_field(request, "track_ids", 1, _Field.TYPE_STRING, repeated=True)

    track = fdp.message_type.add(name="TrackWithFeatures")
    _add_field(track, "id", 1, _Field.TYPE_STRING)
    _add_field(track, "embedding", 2, _Field.TYPE_FLOAT, repeated=True)
    entry = track.nested_type.add(name="MetadataEntry")
    entry.options.map_entry = True
    _add_field(entry, "key", 1, _Field.TYPE_STRING)
    _add_field(entry, "value", 2, _Field.TYPE_STRING)
    _add_field(track, "metadata", 3, _Field.TYPE_MESSAGE, repeated=True, type_name="TrackWithFeatures.MetadataEntry")

    response = fdp.message_type.add(name="GetTracksWithFeaturesResponse")
    _add_field(response, "tracks", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="TrackWithFeatures")

    service = fdp.service.add(name="SpotifySearch")
    service.method.add(
        name="GetTracksWithFeatures",
        input_type=f".{PACKAGE}.GetTracksWithFeaturesRequest",
        output_type=f".{PACKAGE}.GetTracksWithFeaturesResponse",
    )
    return fdp


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_file_descriptor().SerializeToString())


def _message_class(name):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


GetTracksWithFeaturesRequest = _message_class("GetTracksWithFeaturesRequest")
TrackWithFeatures = _message_class("TrackWithFeatures")
GetTracksWithFeaturesResponse = _message_class("GetTracksWithFeaturesResponse")
