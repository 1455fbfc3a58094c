import pytest

from fhir_flattener.io_utils import parse_bundle

PATIENT_BUNDLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Bundle xmlns="http://hl7.org/fhir">
  <type value="searchset"/>
  <entry>
    <resource>
      <Patient>
        <id value="p1"/>
        <name>
          <given value="Anna"/>
          <given value="Maria"/>
          <family value="Smith"/>
        </name>
        <gender value="female"/>
      </Patient>
    </resource>
  </entry>
  <entry>
    <resource>
      <Patient>
        <id value="p2"/>
        <name>
          <given value="Bob"/>
          <family value="Jones"/>
        </name>
        <name>
          <given value="Robert"/>
          <family value="Jones-Miller"/>
        </name>
        <gender value="male"/>
        <address>
          <city value="Berlin"/>
        </address>
      </Patient>
    </resource>
  </entry>
  <entry>
    <resource>
      <Observation>
        <id value="o1"/>
        <code>
          <coding>
            <system value="http://loinc.org"/>
            <code value="8302-2"/>
          </coding>
        </code>
      </Observation>
    </resource>
  </entry>
</Bundle>
"""

SECOND_BUNDLE_XML = """<Bundle xmlns="http://hl7.org/fhir">
  <entry>
    <resource>
      <Patient>
        <id value="p3"/>
        <name>
          <given value="Ann"/>
          <given value="Beth"/>
          <family value="Doe"/>
        </name>
        <name>
          <given value="Clara"/>
          <family value="Roe"/>
        </name>
        <extension url="http://example.org/birthPlace">
          <valueString value="Hamburg"/>
        </extension>
      </Patient>
    </resource>
  </entry>
</Bundle>
"""


@pytest.fixture
def patient_bundle():
    return parse_bundle(PATIENT_BUNDLE_XML)


@pytest.fixture
def second_bundle():
    return parse_bundle(SECOND_BUNDLE_XML)


@pytest.fixture
def bundles(patient_bundle, second_bundle):
    return [patient_bundle, second_bundle]


@pytest.fixture
def patient(patient_bundle):
    """The first Patient resource (two givens, one family)."""
    return patient_bundle.findall('.//{http://hl7.org/fhir}Patient')[0]


@pytest.fixture
def nested_patient(second_bundle):
    return second_bundle.findall('.//{http://hl7.org/fhir}Patient')[0]
