import html

import bleach
from rest_framework import serializers

from clinica.models import Address, Image, Patient
from clinica.services.cpf import normalize_cpf


def clean_text(value):
    """Drop any markup and surrounding whitespace from user supplied text.

    bleach escapes the characters it keeps (``&`` becomes ``&amp;``); the
    text is stored plain, so entities are decoded again once tags are gone.
    """
    if value is None:
        return value
    return html.unescape(bleach.clean(str(value), tags=set(), strip=True)).strip()


class AddressSerializer(serializers.ModelSerializer):
    rua = serializers.CharField(source='street', max_length=255)
    estado = serializers.CharField(source='state', min_length=2, max_length=2)
    numero = serializers.IntegerField(source='number', required=False, allow_null=True, min_value=0, default=None)
    complemento = serializers.CharField(source='complement', required=False, allow_blank=True, max_length=255, default='')
    cep = serializers.RegexField(r'^\d{5}-?\d{3}$', max_length=9)

    class Meta:
        model = Address
        fields = ['id', 'cep', 'rua', 'estado', 'numero', 'complemento']
        read_only_fields = ['id']

    def validate_rua(self, v):
        return clean_text(v)

    def validate_estado(self, v):
        return clean_text(v).upper()

    def validate_complemento(self, v):
        return clean_text(v)

    def validate_cep(self, v):
        return v.replace('-', '')


class ImageSerializer(serializers.ModelSerializer):
    titulo = serializers.CharField(source='title', read_only=True)

    class Meta:
        model = Image
        fields = ['id', 'url', 'titulo']


class PatientSerializer(serializers.ModelSerializer):
    """Public view of a patient: every field except ``senha`` and ``cpf``."""
    nome = serializers.CharField(source='name')
    estaAtivo = serializers.BooleanField(source='is_active')
    telefone = serializers.CharField(source='phone')
    possuiPlanoSaude = serializers.BooleanField(source='has_health_plan')
    planosSaude = serializers.ListField(source='health_plans', child=serializers.CharField())
    imagemUrl = serializers.CharField(source='image_url')
    imagem = ImageSerializer(source='image', allow_null=True)
    historico = serializers.CharField(source='history')
    endereco = AddressSerializer(source='address', allow_null=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'nome', 'email', 'estaAtivo', 'telefone', 'possuiPlanoSaude',
            'planosSaude', 'imagemUrl', 'imagem', 'historico', 'endereco',
        ]


class PatientSearchSerializer(PatientSerializer):
    """Name search results; contact data, history and address stay private."""

    class Meta(PatientSerializer.Meta):
        fields = [
            'id', 'nome', 'email', 'estaAtivo', 'possuiPlanoSaude',
            'planosSaude', 'imagemUrl', 'imagem',
        ]


class PatientWriteSerializer(serializers.Serializer):
    """Incoming patient payload for creation and full replacement."""
    cpf = serializers.CharField(max_length=14)
    nome = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=254)
    senha = serializers.CharField(min_length=4, max_length=128, write_only=True, trim_whitespace=False)
    estaAtivo = serializers.BooleanField(required=False, default=True)
    telefone = serializers.CharField(required=False, allow_blank=True, max_length=20, default='')
    possuiPlanoSaude = serializers.BooleanField(required=False, default=False)
    planosSaude = serializers.ListField(
        child=serializers.JSONField(), required=False, allow_empty=True, default=list
    )
    imagemUrl = serializers.URLField(required=False, allow_blank=True, max_length=500, default='')
    imagem = serializers.PrimaryKeyRelatedField(
        queryset=Image.objects.all(), required=False, allow_null=True, default=None
    )
    historico = serializers.CharField(required=False, allow_blank=True, default='')
    endereco = AddressSerializer(required=False, allow_null=True, default=None)

    def validate_cpf(self, v):
        cpf = normalize_cpf(v)
        if len(cpf) != 11:
            raise serializers.ValidationError('CPF deve conter 11 dígitos')
        return cpf

    def validate_nome(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('Nome deve ter ao menos 2 caracteres')
        return v

    def validate_email(self, v):
        return clean_text(v).lower()

    def validate_telefone(self, v):
        return clean_text(v)

    def validate_historico(self, v):
        return clean_text(v)

    def validate_planosSaude(self, v):
        for plan in v:
            if isinstance(plan, bool) or not isinstance(plan, (int, str)):
                raise serializers.ValidationError('Planos de saúde devem ser códigos numéricos')
        return v


class PatientUpdateSerializer(PatientWriteSerializer):
    """Full replacement; the password is only changed when sent."""
    senha = serializers.CharField(
        min_length=4, max_length=128, write_only=True, trim_whitespace=False, required=False
    )
    # the address has its own endpoint
    endereco = None
