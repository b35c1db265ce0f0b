"""Pytest configuration: adds src/ to sys.path and provides file API documents."""

import os
import sys

import pytest

# Add src/ to Python path so tests can import from jotta_rest
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


FILE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<file name="blupp.dat" uuid="1502fdd0-c24e-4acc-984a-7d1e05059ccd" time="2019-01-20-T10:03:54Z" host="Backup2-backup2-get-oldgluster-dp1-2">
  <path xml:space="preserve">/jdoe/Jotta/Sync/test</path>
  <abspath xml:space="preserve">/jdoe/Jotta/Sync/test</abspath>
  <currentRevision>
    <number>3</number>
    <state>COMPLETED</state>
    <created>2019-01-20-T10:01:03Z</created>
    <modified>2019-01-20-T10:01:03Z</modified>
    <mime>application/octet-stream</mime>
    <size>10</size>
    <md5>5c372a32c9ae748a4c040ebadc51a829</md5>
    <updated>2019-01-20-T10:01:03Z</updated>
  </currentRevision>
  <revisions>
    <revision>
      <number>2</number>
      <state>COMPLETED</state>
      <created>2019-01-20-T07:47:19Z</created>
      <modified>2019-01-20-T07:47:19Z</modified>
      <mime>application/octet-stream</mime>
      <size>10</size>
      <md5>5c372a32c9ae748a4c040ebadc51a829</md5>
      <updated>2019-01-20-T07:47:19Z</updated>
    </revision>
  </revisions>
</file>
"""

FOLDER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<folder name="data" time="2018-05-24-T19:50:45Z" host="dn-157">
  <path xml:space="preserve">/jdoe/Jotta/Sync/test123</path>
  <abspath xml:space="preserve">/jdoe/Jotta/Sync/test123</abspath>
  <folders>
    <folder name="config (2018-05-19 (2))" deleted="2018-05-18-T23:47:30Z">
      <abspath xml:space="preserve">/jdoe/Jotta/Sync/test123</abspath>
    </folder>
    <folder name="data"/>
    <folder name="index"/>
    <folder name="keys"/>
    <folder name="locks"/>
    <folder name="snapshots"/>
  </folders>
  <files>
    <file name="f87c4982fa8c" uuid="226cd129-3f6a-4670-9e37-7e72d4ecd34d">
      <currentRevision>
        <number>1</number>
        <state>COMPLETED</state>
        <created>2018-05-19-T00:55:56Z</created>
        <modified>2018-05-19-T00:55:56Z</modified>
        <mime>application/octet-stream</mime>
        <size>4508471</size>
        <md5>e1dc5bc4f2bec6bf866a0a463eb5c239</md5>
        <updated>2018-05-19-T00:57:06Z</updated>
      </currentRevision>
    </file>
    <file name="f91ba78157ea" uuid="9b009f64-8e6f-4bea-bd82-510edd7f645e">
      <latestRevision>
        <number>1</number>
        <state>INCOMPLETE</state>
        <created>2018-05-19-T00:50:09Z</created>
        <modified>2018-05-19-T00:50:09Z</modified>
        <mime>application/octet-stream</mime>
        <md5>a3ee7c06817513862b5b3d9b758899af</md5>
        <updated>2018-05-19-T00:50:09Z</updated>
      </latestRevision>
    </file>
  </files>
  <metadata first="" max="" total="8" num_folders="6" num_files="2"/>
</folder>
"""

ERROR_XML = """<?xml version="1.0" encoding="UTF-8"?>
<error>
  <code>404</code>
  <message>no.jotta.backup.errors.NoSuchPathException: Directory /jdoe/Jotta/Sync/nope</message>
  <reason>Not Found</reason>
  <cause></cause>
  <hostname>dn-125</hostname>
  <x-id>096492164813</x-id>
</error>
"""


@pytest.fixture
def file_xml() -> str:
    return FILE_XML


@pytest.fixture
def folder_xml() -> str:
    return FOLDER_XML


@pytest.fixture
def error_xml() -> str:
    return ERROR_XML
