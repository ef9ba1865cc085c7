import random
import string

from dockdesc.exceptions import DescriptorError
from dockdesc.PARSERS.descriptor_yaml_parser import DescriptorYamlParser
from dockdesc.PARSERS.dockerfile_parser import DockerfileParser


def random_string(length):
    return ''.join(random.choice(string.printable) for _ in range(length))


def test_fuzz_dockerfile_parser():
    # Best-effort parsing never raises on arbitrary text
    parser = DockerfileParser()
    for _ in range(100):
        content = random_string(random.randint(0, 1000))
        descriptor = parser.parse_from_string(content)
        assert descriptor.content == content


def test_fuzz_dockerfile_keywords():
    parser = DockerfileParser()
    keywords = ["FROM", "RUN", "CMD", "ENV", "EXPOSE", "COPY", "ADD", "ONBUILD", "VOLUME", "#"]
    for _ in range(200):
        line = random.choice(keywords) + " " + random_string(random.randint(0, 40))
        parser.parse_from_string(line)


def test_fuzz_yaml_parser():
    parser = DescriptorYamlParser(context={})
    for _ in range(100):
        content = random_string(random.randint(0, 1000))
        try:
            parser.parse_from_string(content)
        except DescriptorError:
            pass


def test_edge_cases_parsers():
    parser = DockerfileParser()

    # Empty string
    assert len(parser.parse_from_string("")) == 0

    # Only whitespace
    assert len(parser.parse_from_string("   \n\t  ")) == 0

    # Very long line
    run = parser.parse_from_string("RUN " + "a" * 10000).get_all_run()[0]
    assert len(run.parameters[0]) == 10000

    # Many line continuations
    descriptor = parser.parse_from_string("RUN echo \\\n" * 100 + "hello")
    assert len(descriptor.get_all_run()) == 1
