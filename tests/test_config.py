import pytest

from udagram import common
from udagram.config import Config, load_config


class TestConfig:

    def test_defaults(self):
        config = Config.from_env({})

        assert config.groups_table == 'Groups-dev'
        assert config.images_table == 'Images-dev'
        assert config.image_id_index == 'ImageIdIndex'
        assert config.signed_url_expiration == 300
        assert config.endpoint_url is None

    def test_from_environment(self):
        config = Config.from_env({
            'GROUPS_TABLE': 'Groups-prod',
            'IMAGES_TABLE': 'Images-prod',
            'IMAGE_ID_INDEX': 'ById',
            'IMAGES_S3_BUCKET': 'udagram-images-prod',
            'SIGNED_URL_EXPIRATION': '60',
            'AWS_ENDPOINT_URL': 'http://localhost:4566',
        })

        assert config.groups_table == 'Groups-prod'
        assert config.images_bucket == 'udagram-images-prod'
        assert config.image_id_index == 'ById'
        assert config.signed_url_expiration == 60
        assert config.endpoint_url == 'http://localhost:4566'

    @pytest.mark.parametrize('value', ['soon', '0', '-1'])
    def test_invalid_expiration(self, value):
        with pytest.raises(ValueError):
            Config.from_env({'SIGNED_URL_EXPIRATION': value})

    def test_loaded_once(self, monkeypatch):
        first = load_config()
        monkeypatch.setenv('GROUPS_TABLE', 'changed')

        assert load_config() is first
        assert load_config().groups_table == 'test-groups'


class TestClients:

    def test_clients_are_reused(self):
        config = load_config()

        assert common.dynamodb_resource(config) is common.dynamodb_resource(config)
        assert common.s3_client(config) is common.s3_client(config)
        assert common.sns_client(config) is common.sns_client(config)

    def test_clients_follow_configuration(self):
        config = load_config()
        other = Config.from_env({'AWS_REGION': 'eu-west-1'})

        assert common.s3_client(config) is not common.s3_client(other)
        assert common.s3_client(other).meta.region_name == 'eu-west-1'

    def test_clear_clients(self):
        config = load_config()
        first = common.sns_client(config)

        common.clear_clients()

        assert common.sns_client(config) is not first
