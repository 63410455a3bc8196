from rest_framework import serializers

from .models import OutputMode, RenditionProfile


class RenditionProfileSerializer(serializers.Serializer):
    name = serializers.RegexField(r"^[A-Za-z0-9_-]+$", max_length=32)
    width = serializers.IntegerField(min_value=1)
    height = serializers.IntegerField(min_value=1)
    output_mode = serializers.ChoiceField(choices=OutputMode.choices, default=OutputMode.SINGLE_FILE)

    def create(self, validated_data):
        return RenditionProfile(**validated_data)


class RenditionCatalogSerializer(serializers.ListSerializer):
    child = RenditionProfileSerializer()

    def validate(self, attrs):
        """
        Names become key segments, so they must be unique. Order is kept.
        """
        if not attrs:
            raise serializers.ValidationError("Rendition catalog must not be empty.")
        seen = set()
        dupes = []
        for profile in attrs:
            if profile["name"] in seen:
                dupes.append(profile["name"])
            seen.add(profile["name"])
        if dupes:
            raise serializers.ValidationError(f"Duplicate rendition names: {sorted(set(dupes))}")
        return attrs

    def create(self, validated_data):
        return [RenditionProfile(**item) for item in validated_data]
