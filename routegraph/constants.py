"""
Configuration constants for the routegraph compiler.

Tag normalisation keys, the entity classification rule table, POI and admin
enrichment parameters, the fixed tile grid, and the column layout of every
compiled table.
"""

DEFAULT_CRS = "EPSG:4326"
GEOD_ELLPS = "WGS84"

# =============================================================================
# TAG FILTER
# Keys regarded as useless for routing. Most of them come from imports or are
# internal notes for mappers. A trailing '*' matches every key with the prefix.
# =============================================================================

DELETE_KEYS = (
    # mapper keys
    'attribution',
    'comment',
    'created_by',
    'fixme',
    'note',
    'note:*',
    'odbl',
    'odbl:note',
    'source',
    'source:*',
    'source_ref',

    # Corine Land Cover (CLC) (Europe)
    'CLC:*',
    # Geobase, CanVec (CA)
    'geobase:*',
    'canvec:*',
    # osak, kms (DK)
    'osak:*',
    'kms:*',
    # ngbe (ES)
    'ngbe:*',
    # Friuli Venezia Giulia (IT)
    'it:fvg:*',
    # KSJ2, Yahoo/ALPS (JA)
    'KSJ2:*',
    'yh:*',
    # LINZ (NZ)
    'LINZ2OSM:*',
    'linz2osm:*',
    'LINZ:*',
    'ref:linz:*',
    # WroclawGIS (PL)
    'WroclawGIS:*',
    # Naptan (UK)
    'naptan:*',
    # TIGER, GNIS, NHD (US)
    'tiger:*',
    'gnis:*',
    'NHD:*',
    'nhd:*',
    # mvdgis (Montevideo, UY)
    'mvdgis:*',
    # EUROSHA
    'project:eurosha_2012',
    # UrbIS (Brussels, BE)
    'ref:UrbIS',
    # NHN, StatsCan (CA)
    'accuracy:meters',
    'sub_sea:type',
    'waterway:type',
    'statscan:rbuid',
    # RUIAN, DIBAVOD, UIR-ADR (CZ)
    'ref:ruian:addr',
    'ref:ruian',
    'building:ruian:type',
    'dibavod:id',
    'uir_adr:ADRESA_KOD',
    # GST (DK)
    'gst:feat_id',
    # Maa-amet (EE)
    'maaamet:ETAK',
    # FANTOIR (FR)
    'ref:FR:FANTOIR',
    # 3dshapes, AND (NL)
    '3dshapes:ggmodelk',
    'AND_nosr_r',
    # OPPDATERIN (NO)
    'OPPDATERIN',
    # Various imports, TERYT (PL)
    'addr:city:simc',
    'addr:street:sym_ul',
    'building:usage:pl',
    'building:use:pl',
    'teryt:simc',
    # RABA (SK)
    'raba:id',
    # DCGIS, NYC BIN, Chicago, Louisville, MassGIS, LA County (US)
    'dcgis:gis_id',
    'nycdoitt:bin',
    'chicago:building_id',
    'lojic:bgnum',
    'massgis:way_id',
    'lacounty:*',
    # Bundesamt fur Eich- und Vermessungswesen (AT)
    'at_bev:addr_date',

    # misc
    'import',
    'import_uuid',
    'OBJTYPE',
    'SK53_bulk:load',
    'mml:class',

    # custom
    'mapillary',
)

# =============================================================================
# ENTITY CLASSIFICATION
# =============================================================================

ROADWAY_KEYS = ('highway',)

# Any of these keys makes a node or a closed way a point of interest.
POI_KEYS = (
    'amenity', 'shop', 'leisure', 'office', 'tourism',
    'natural', 'healthcare', 'emergency', 'craft',
)

STREET_NAME_KEY = 'addr:street'
HOUSENUMBER_KEY = 'addr:housenumber'

# Closed-way POIs smaller than this (square metres) collapse to their centroid.
POI_AREA_THRESHOLD_M2 = 2000.0

# =============================================================================
# RELATIONS
# =============================================================================

RESTRICTION_TYPES = ('restriction',)
ASSOCIATED_STREET_TYPES = ('associatedStreet', 'street')

# =============================================================================
# ADMIN ENRICHMENT
# =============================================================================

PLACE_TYPES = (
    'country', 'region', 'county', 'locality', 'neighbourhood', 'borough',
    'campus', 'dependency', 'localadmin', 'macrohood', 'marketarea', 'microhood',
)

ADMIN_TAG_PREFIX = 'wof:'

# =============================================================================
# TILE GRID
# =============================================================================

TILE_ZOOM = 12

# =============================================================================
# COMPILED TABLES
# =============================================================================

ROAD_COLUMNS = ['way_id', 'tags', 'rel_ids', 'length_m', 'geometry']
POI_COLUMNS = ['id', 'way_id', 'node_id', 'tags', 'geometry']
RESTRICTION_COLUMNS = ['relation_id', 'ref', 'from_way_id', 'to_way_id', 'tags', 'members']
CROSSING_COLUMNS = ['way_id', 'transition_to_way_id', 'geometry']
INTERSECTION_COLUMNS = [
    'way_id', 'transition_to_way_id', 'distance_along_way',
    'transition_to_distance_along_way', 'way_tags', 'transition_to_way_tags',
    'restriction_tags', 'geometry',
]
ADMIN_COLUMNS = ['id', 'place_type', 'name', 'geometry']
TILE_COLUMNS = ['index', 'x', 'y', 'z', 'geometry']

# Columns holding mappings or nested lists; stored as JSON text on disk.
JSON_COLUMNS = ('tags', 'members', 'way_tags', 'transition_to_way_tags', 'restriction_tags')
