"""Unit tests for the Service Registry."""
import pytest

from servicebot.core.exceptions import ServiceNotFoundError, UserInputError
from servicebot.services.registry import (
    DEFAULT_SERVICES,
    ParamType,
    ServiceRegistry,
    ServiceType,
)


class TestServiceType:
    def test_conversational(self):
        assert ServiceType.CHAT.is_conversational
        assert ServiceType.AGENTS.is_conversational
        assert not ServiceType.URL_EXTRACTION.is_conversational
        assert not ServiceType.PREDICTION.is_conversational

    def test_request(self):
        assert ServiceType.PREDICTION.is_request
        assert ServiceType.IMAGE_GENERATION.is_request
        assert not ServiceType.CHAT.is_request


class TestLookup:
    def test_ids_are_positions(self, registry):
        assert [d.id for d in registry] == list(range(len(registry)))

    def test_get(self, registry):
        assert registry.get(3).name == "Image generation"

    @pytest.mark.parametrize("service_id", [None, -1, 6, 100])
    def test_get_out_of_range(self, registry, service_id):
        assert registry.get(service_id) is None

    def test_require_raises_user_error(self, registry):
        with pytest.raises(ServiceNotFoundError) as exc:
            registry.require(99)
        assert isinstance(exc.value, UserInputError)
        assert str(exc.value) == "Sorry. Service not found."


class TestDescriptor:
    def test_find_param_by_type(self, registry):
        descriptor = registry.get(3)
        assert descriptor.find_param_by_type(ParamType.TEXT) == "prompt"
        assert descriptor.find_param_by_type(ParamType.IMAGE) == "image"
        assert descriptor.find_param_by_type(ParamType.AUDIO) is None

    def test_first_param_of_type_wins(self):
        registry = ServiceRegistry.from_entries([{
            "name": "Two texts",
            "type": "prediction",
            "params": [{"name": "first", "type": "text"}, {"name": "second", "type": "text"}],
        }])
        assert registry.get(0).find_param_by_type("text") == "first"

    def test_option_params(self, registry):
        options = registry.get(3).option_params()
        assert [p.name for p in options] == ["model"]
        assert options[0].options == ("generate", "edit", "variation")

    def test_describe_lists_inputs(self, registry):
        text = registry.get(4).describe()
        assert text.startswith("Active service: Captioning")
        assert "text (text), image (image)" in text

    def test_describe_without_params(self, registry):
        assert registry.get(0).describe() == "Active service: Chat"

    def test_param_type_defaults_to_text(self):
        registry = ServiceRegistry.from_entries([{"name": "X", "type": "prediction", "params": [{"name": "q"}]}])
        assert registry.get(0).params[0].type == "text"


class TestLoading:
    def test_default_catalog(self):
        registry = ServiceRegistry.default()
        assert len(registry) == len(DEFAULT_SERVICES)
        assert {d.type for d in registry} == set(ServiceType)

    def test_missing_file_falls_back(self, tmp_path):
        registry = ServiceRegistry.load(tmp_path / "missing.yml")
        assert len(registry) == len(DEFAULT_SERVICES)

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "services.yml"
        path.write_text(
            "services:\n"
            "  - name: Echo\n"
            "    type: chat\n"
            "    answer: chat\n"
            "  - name: Upscale\n"
            "    type: prediction\n"
            "    version: owner/upscaler\n"
            "    params:\n"
            "      - name: image\n"
            "        type: image\n"
            "      - name: scale\n"
            "        type: option\n"
            "        options: [2, 4]\n"
        )

        registry = ServiceRegistry.load(path)

        assert len(registry) == 2
        upscale = registry.get(1)
        assert upscale.version == "owner/upscaler"
        assert upscale.params[1].options == ("2", "4")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            ServiceRegistry.from_entries([{"name": "X", "type": "telepathy"}])
