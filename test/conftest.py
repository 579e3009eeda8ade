import numpy as np
import pytest
from pubsub import pub
from pydicom.dataset import Dataset, FileDataset, FileMetaDataset
from pydicom.sequence import Sequence
from pydicom.tag import Tag
from pydicom.uid import ExplicitVRLittleEndian, generate_uid
from dicompylercore import dvh

from conformitychecks import dosevolume
from conformitychecks.dosevolume import DoseVolumeCalculator

RTDOSE_SOP_CLASS = '1.2.840.10008.5.1.4.1.1.481.2'
RTSS_SOP_CLASS = '1.2.840.10008.5.1.4.1.1.481.3'
RTPLAN_SOP_CLASS = '1.2.840.10008.5.1.4.1.1.481.5'

# Prescription of 60 Gy
RXDOSE = 6000


def cumulative_dvh(levels, size=70):
    """Build a cumulative DVH with 1 Gy bins from (start dose, volume) steps."""
    counts = np.zeros(size)
    for start, volume in levels:
        counts[start:] = volume
    return dvh.DVH(counts=counts, bins=np.arange(size + 1, dtype=float),
                   dvh_type='cumulative', dose_units='Gy',
                   volume_units='cm3')


@pytest.fixture
def sample_dvhs():
    # ROI 1 BODY: 1000 cc, 25 cc >= 30 Gy (50%), 12 cc >= 60 Gy (100%)
    # ROI 2 PTV: 10 cc, fully covered up to 58 Gy
    # ROI 3 Lung: no dose at all
    # ROI 4 Empty: no volume
    return {
        1: cumulative_dvh([(0, 1000.), (10, 200.), (30, 25.), (60, 12.),
                           (65, 0.)]),
        2: cumulative_dvh([(0, 10.), (58, 0.)]),
        3: cumulative_dvh([(0, 300.), (1, 0.)]),
        4: cumulative_dvh([(0, 0.)]),
    }


@pytest.fixture
def fake_get_dvh(monkeypatch, sample_dvhs):
    calls = []

    def get_dvh(structure, dose, roi, limit=None, callback=None):
        calls.append(roi)
        return sample_dvhs[roi]

    monkeypatch.setattr(dosevolume.dvhcalc, 'get_dvh', get_dvh)
    return calls


@pytest.fixture
def calculator(fake_get_dvh):
    return DoseVolumeCalculator(object(), object(), RXDOSE)


@pytest.fixture
def structures():
    return {
        1: {'id': 1, 'name': 'BODY', 'type': 'EXTERNAL'},
        2: {'id': 2, 'name': 'PTV', 'type': 'PTV'},
        3: {'id': 3, 'name': 'Lung', 'type': 'ORGAN'},
        4: {'id': 4, 'name': 'Empty', 'type': 'PTV'},
    }


class FakeContext:
    def __init__(self, structures, patient=None, plan=None,
                 has_structure_set=True, is_dose_valid=True, dose_max=64.5):
        self.patient = patient
        self.plan = plan
        self.structures = structures
        self.rtss = object() if has_structure_set else None
        self.rtdose = object() if is_dose_valid else None
        self.has_structure_set = has_structure_set
        self.is_dose_valid = is_dose_valid
        self.dose_max = dose_max


@pytest.fixture
def context(structures):
    return FakeContext(
        structures,
        patient={'id': 'PAT001', 'name': 'Doe, Jane'},
        plan={'id': '1.2.3', 'label': 'SBRT Lung', 'rxdose': RXDOSE,
              'target': 2})


@pytest.fixture(autouse=True)
def clear_pubsub():
    yield
    pub.unsubAll()


def write_dataset(path, ds, sop_class):
    """Save the dataset as a DICOM Part 10 file."""
    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = sop_class
    file_meta.MediaStorageSOPInstanceUID = ds.SOPInstanceUID
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
    fds = FileDataset(str(path), ds, file_meta=file_meta,
                      preamble=b"\0" * 128, is_implicit_VR=False,
                      is_little_endian=True)
    fds.save_as(str(path))
    return path


def patient_dataset(sop_class, modality):
    ds = Dataset()
    ds.SOPClassUID = sop_class
    ds.SOPInstanceUID = generate_uid()
    ds.Modality = modality
    ds.PatientID = 'PAT001'
    ds.PatientName = 'Doe^Jane'
    ds.StudyInstanceUID = '1.2.826.0.1.3680043.8.498.1'
    ds.SeriesInstanceUID = generate_uid()
    return ds


def make_rtss():
    ds = patient_dataset(RTSS_SOP_CLASS, 'RTSTRUCT')
    ds.StructureSetLabel = 'Lung'
    rois = Sequence()
    observations = Sequence()
    contours = Sequence()
    for number, name, roitype in ((1, 'BODY', 'EXTERNAL'),
                                  (2, 'PTV', 'PTV')):
        roi = Dataset()
        roi.ROINumber = number
        roi.ROIName = name
        rois.append(roi)
        observation = Dataset()
        observation.ObservationNumber = number
        observation.ReferencedROINumber = number
        observation.RTROIInterpretedType = roitype
        observations.append(observation)
        contour = Dataset()
        contour.ReferencedROINumber = number
        contour.ROIDisplayColor = [255, 0, 0]
        contours.append(contour)
    ds.StructureSetROISequence = rois
    ds.RTROIObservationsSequence = observations
    ds.ROIContourSequence = contours
    return ds


def make_rtplan(rtss, label='SBRT Lung', target=2, rxdose=60):
    ds = patient_dataset(RTPLAN_SOP_CLASS, 'RTPLAN')
    ds.RTPlanLabel = label
    ds.RTPlanDate = '20170101'
    ds.RTPlanTime = '120000'
    reference = Dataset()
    reference.ReferencedSOPClassUID = RTSS_SOP_CLASS
    reference.ReferencedSOPInstanceUID = rtss.SOPInstanceUID
    ds.ReferencedStructureSetSequence = Sequence([reference])
    dose_reference = Dataset()
    dose_reference.DoseReferenceNumber = 1
    dose_reference.DoseReferenceStructureType = 'VOLUME'
    dose_reference.DoseReferenceType = 'TARGET'
    dose_reference.ReferencedROINumber = target
    dose_reference.TargetPrescriptionDose = rxdose
    ds.DoseReferenceSequence = Sequence([dose_reference])
    return ds


def make_rtdose(rtplan, summation='PLAN'):
    ds = patient_dataset(RTDOSE_SOP_CLASS, 'RTDOSE')
    ds.DoseUnits = 'GY'
    ds.DoseType = 'PHYSICAL'
    ds.DoseSummationType = summation
    if rtplan is not None:
        reference = Dataset()
        reference.ReferencedSOPClassUID = RTPLAN_SOP_CLASS
        reference.ReferencedSOPInstanceUID = rtplan.SOPInstanceUID
        ds.ReferencedRTPlanSequence = Sequence([reference])
    return ds


@pytest.fixture
def plan_folder(tmp_path):
    folder = tmp_path / 'patient'
    folder.mkdir()
    rtss = make_rtss()
    rtplan = make_rtplan(rtss)
    rtdose = make_rtdose(rtplan)
    write_dataset(folder / 'RS.dcm', rtss, RTSS_SOP_CLASS)
    write_dataset(folder / 'RP.dcm', rtplan, RTPLAN_SOP_CLASS)
    write_dataset(folder / 'RD.dcm', rtdose, RTDOSE_SOP_CLASS)
    return {'path': folder, 'rtss': rtss, 'rtplan': rtplan, 'rtdose': rtdose}


def add_contours(rtss, halfwidths, planes):
    """Contour each ROI as a square of the given half width on every plane."""
    for contour in rtss.ROIContourSequence:
        halfwidth = halfwidths[int(contour.ReferencedROINumber)]
        contours = Sequence()
        for z in planes:
            c = Dataset()
            c.ContourGeometricType = 'CLOSED_PLANAR'
            c.NumberOfContourPoints = 4
            c.ContourData = [-halfwidth, -halfwidth, z, halfwidth, -halfwidth, z,
                             halfwidth, halfwidth, z, -halfwidth, halfwidth, z]
            contours.append(c)
        contour.ContourSequence = contours
    return rtss


def add_dose_grid(rtdose, levels, size=41, spacing=2., frames=21):
    """Add a dose grid centered on the origin with square dose levels.

    :param levels:  (half width in mm, dose in Gy) pairs, largest first."""
    offset = (size - 1) * spacing / 2
    coords = np.arange(size) * spacing - offset
    x, y = np.meshgrid(coords, coords)
    plane = np.zeros((size, size))
    for halfwidth, dose in levels:
        plane[(np.abs(x) <= halfwidth) & (np.abs(y) <= halfwidth)] = dose
    grid = np.tile(np.round(plane * 1000), (frames, 1, 1)).astype(np.uint16)

    rtdose.SamplesPerPixel = 1
    rtdose.PhotometricInterpretation = 'MONOCHROME2'
    rtdose.BitsAllocated = 16
    rtdose.BitsStored = 16
    rtdose.HighBit = 15
    rtdose.PixelRepresentation = 0
    rtdose.Rows = size
    rtdose.Columns = size
    rtdose.NumberOfFrames = frames
    rtdose.FrameIncrementPointer = Tag(0x3004, 0x000c)
    rtdose.PixelSpacing = [spacing, spacing]
    rtdose.ImageOrientationPatient = [1, 0, 0, 0, 1, 0]
    zoffset = (frames - 1) * spacing / 2
    rtdose.ImagePositionPatient = [-offset, -offset, -zoffset]
    rtdose.GridFrameOffsetVector = [i * spacing for i in range(frames)]
    rtdose.DoseGridScaling = 0.001
    rtdose.PixelData = grid.tobytes()
    return rtdose


@pytest.fixture
def dose_plan_folder(tmp_path):
    """Plan with a contoured body and PTV and a calculated dose grid.

    Pixel centers sit on even millimeters, so the BODY (37 mm half width)
    holds 37 x 37 pixels per plane and the PTV (9 mm) 9 x 9. The 63 Gy
    region (10 mm) holds 11 x 11 pixels and the 33 Gy region (20 mm)
    21 x 21, giving R100 = 121 / 81 and R50 = 441 / 81."""
    folder = tmp_path / 'patient'
    folder.mkdir()
    rtss = add_contours(make_rtss(), {1: 37., 2: 9.},
                        [float(z) for z in range(-10, 12, 2)])
    rtplan = make_rtplan(rtss)
    rtdose = add_dose_grid(make_rtdose(rtplan),
                           [(40., 10.), (20., 33.), (10., 63.)])
    write_dataset(folder / 'RS.dcm', rtss, RTSS_SOP_CLASS)
    write_dataset(folder / 'RP.dcm', rtplan, RTPLAN_SOP_CLASS)
    write_dataset(folder / 'RD.dcm', rtdose, RTDOSE_SOP_CLASS)
    return folder
